"""Core database connection: open/create, schema bootstrap, statement cache."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional

from movieshelf.db.codec import EngineText
from movieshelf.db.events import StoreErrorKind, StoreEvent, StoreObserver, log_event
from movieshelf.db.schema import SCHEMA_DDL, StatementKind
from movieshelf.db.statements import Statement, StatementCache

logger = logging.getLogger(__name__)


class Database:
    """
    SQLite connection owned by a single store.

    Opening never raises: on failure the error text is kept in
    ``open_error`` and the connection stays ``None`` so callers can check
    ``is_open`` before touching it.
    """

    def __init__(self, path: Path | str, busy_timeout: float = 5.0,
                 emit: Optional[StoreObserver] = None):
        self.path = Path(path)
        self.busy_timeout = busy_timeout
        self.open_error: Optional[str] = None
        self.statements = StatementCache()
        self._emit = emit or log_event
        self._conn: Optional[sqlite3.Connection] = None

    # -- connection lifecycle --------------------------------------------------

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def connection(self) -> Optional[sqlite3.Connection]:
        return self._conn

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _uri(self) -> str:
        return f"{self.path.resolve().as_uri()}?mode=rwc"

    def open(self) -> bool:
        """Open (creating if missing) the backing file and ensure the schema."""
        if self._conn is not None:
            return True
        try:
            self._ensure_dir()
            conn = sqlite3.connect(
                self._uri(),
                uri=True,
                timeout=self.busy_timeout,
                isolation_level=None,
                check_same_thread=False,
            )
        except (sqlite3.Error, OSError) as e:
            self._fail_open("Could not open or create database", e)
            return False

        conn.text_factory = EngineText
        try:
            conn.execute(SCHEMA_DDL)
        except sqlite3.Error as e:
            conn.close()
            self._fail_open("Could not create table", e)
            return False

        self._conn = conn
        self.open_error = None
        logger.debug(f"sqlite3 threadsafety level: {sqlite3.threadsafety}")
        logger.info(f"Setup table finished, path: {self.path}")
        return True

    def _fail_open(self, message: str, error: Exception) -> None:
        self.open_error = str(error)
        self._emit(StoreEvent(
            StoreErrorKind.CONNECTION_UNUSABLE,
            message,
            {"error": self.open_error, "path": str(self.path)},
        ))

    def close(self) -> None:
        """Finalize cached statements, then close the connection. Safe to repeat."""
        self.statements.finalize_all()
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        try:
            conn.close()
        except sqlite3.Error as e:
            logger.warning(f"Error while closing {self.path}: {e}")
        logger.info("Database closed")

    # -- statements ------------------------------------------------------------

    def prepare(self, kind: StatementKind) -> Optional[Statement]:
        """Return the compiled statement for ``kind``, or ``None`` if unavailable."""
        if self._conn is None:
            self._emit(StoreEvent(
                StoreErrorKind.CONNECTION_UNUSABLE,
                "DB connection is not open",
                {"operation": kind.value},
            ))
            return None
        try:
            return self.statements.prepare(self._conn, kind)
        except sqlite3.Error as e:
            self._emit(StoreEvent(
                StoreErrorKind.COMPILE_FAILED,
                f"Could not prepare {kind.value}",
                {"error": str(e)},
            ))
            return None
