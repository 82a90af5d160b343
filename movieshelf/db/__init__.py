"""Database layer — SQLite connection, compiled statement cache and the movie store."""

from movieshelf.db.database import Database
from movieshelf.db.events import StoreErrorKind, StoreEvent, log_event
from movieshelf.db.movie_store import MovieStore, open
from movieshelf.db.schema import SCHEMA_DDL, STATEMENT_SQL, StatementKind

__all__ = [
    "Database", "MovieStore", "open",
    "StoreErrorKind", "StoreEvent", "log_event",
    "SCHEMA_DDL", "STATEMENT_SQL", "StatementKind",
]
