"""Movie store: the five fixed operations over the ``Movies`` table."""

from __future__ import annotations

import logging
import sqlite3
import time
from typing import Callable, Iterable, Optional

from movieshelf.config import Settings, get_db_path, settings as default_settings
from movieshelf.db.codec import bind_int64, bind_text, decode_int, decode_text
from movieshelf.db.database import Database
from movieshelf.db.events import StoreErrorKind, StoreEvent, StoreObserver, log_event
from movieshelf.db.schema import MOVIE_COLUMNS, StatementKind
from movieshelf.db.statements import Statement, is_busy
from movieshelf.models.movie import Movie

logger = logging.getLogger(__name__)

SnapshotSubscriber = Callable[[list[Movie]], None]


class MovieStore:
    """
    Persistent store for ``Movie`` rows backed by one SQLite file.

    No operation raises. Failures are reported to the observer and turned
    into a benign default (``0``, ``False``, ``[]`` or an unchanged
    snapshot); ``last_error`` holds the failure seen by the latest call, or
    ``None`` if it succeeded.

    ``movies`` is the snapshot published by the last ``retrieve_all``. It is
    not refreshed by ``insert`` or ``delete_all``.

    Uuids are stored in lowercase (``str(UUID)``). The ``uuid`` column is
    compared case-sensitively, so a file whose rows hold uppercase uuids
    accepts the same movie again under its lowercase form. Reading either
    form yields the same ``Movie``.
    """

    def __init__(self, name: str, *, settings: Optional[Settings] = None,
                 observer: Optional[StoreObserver] = None, auto_open: bool = True):
        self.name = name
        self.settings = settings or default_settings
        self.busy_retry_interval = self.settings.BUSY_RETRY_INTERVAL_SECONDS
        self.busy_max_retries = self.settings.BUSY_MAX_RETRIES
        self.last_error: Optional[StoreEvent] = None
        self._observer = observer or log_event
        self._db: Optional[Database] = None
        self._movies: list[Movie] = []
        self._subscribers: list[SnapshotSubscriber] = []
        if auto_open:
            self.open()

    # -- lifecycle -------------------------------------------------------------

    @property
    def database(self) -> Optional[Database]:
        return self._db

    @property
    def is_open(self) -> bool:
        return self._db is not None and self._db.is_open

    def open(self) -> bool:
        if self.is_open:
            return True
        try:
            path = get_db_path(self.name, self.settings)
        except ValueError as e:
            self._emit(StoreEvent(
                StoreErrorKind.CONNECTION_UNUSABLE, "Invalid store name", {"error": str(e)}
            ))
            return False
        self._db = Database(
            path, busy_timeout=self.settings.BUSY_TIMEOUT_SECONDS, emit=self._emit
        )
        return self._db.open()

    def close(self) -> None:
        if self._db is not None:
            self._db.close()

    def __enter__(self) -> "MovieStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __del__(self):
        db = getattr(self, "_db", None)
        if db is not None:
            db.close()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<MovieStore {self.name!r} ({state})>"

    # -- published snapshot ----------------------------------------------------

    @property
    def movies(self) -> list[Movie]:
        return list(self._movies)

    def subscribe(self, callback: SnapshotSubscriber) -> Callable[[], None]:
        """Call ``callback`` with each new snapshot. Returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, movies: list[Movie]) -> None:
        self._movies = movies
        for callback in list(self._subscribers):
            try:
                callback(list(movies))
            except Exception:
                logger.exception("Snapshot subscriber failed")

    # -- operations ------------------------------------------------------------

    def insert(self, movies: Iterable[Movie]) -> int:
        """
        Insert ``movies`` in order and return the number of rows attempted.

        A row that fails (duplicate uuid, bad year, engine error) is reported
        and skipped; the batch carries on. Use ``count()`` for an exact
        success count.
        """
        self._begin()
        movies = list(movies)
        if not self._require_open(StatementKind.INSERT):
            return 0
        if not movies:
            logger.info("No movies to insert")
            return 0
        statement = self._prepare(StatementKind.INSERT)
        if statement is None:
            return 0

        attempted = 0
        for movie in movies:
            attempted += 1
            try:
                statement.bind(
                    bind_text(movie.uuid_string),
                    bind_text(movie.title),
                    bind_int64(movie.year),
                )
                self._step_until_not_busy(statement, movie.title)
            except (TypeError, OverflowError) as e:
                self._emit(StoreEvent(
                    StoreErrorKind.BIND_FAILED,
                    "Could not bind row data",
                    {"title": movie.title, "error": str(e)},
                ))
            except sqlite3.Error as e:
                self._emit(StoreEvent(
                    StoreErrorKind.EXECUTION_FAILED,
                    "Could not insert row data",
                    {"title": movie.title, "error": str(e)},
                ))
            finally:
                statement.reset()
        logger.info(f"Stored {attempted} movie(s) in {self.name}")
        return attempted

    def retrieve_all(self) -> None:
        """Read every row and publish it as the new ``movies`` snapshot."""
        self._begin()
        statement = self._prepare(StatementKind.RETRIEVE_ALL)
        if statement is None:
            return
        movies = self._collect(statement)
        if movies is not None:
            self._publish(movies)

    def find_by_year(self, year: int) -> list[Movie]:
        """Up to 30 movies from ``year``, ordered by title."""
        self._begin()
        statement = self._prepare(StatementKind.FIND_BY_YEAR)
        if statement is None:
            return []
        try:
            statement.bind(bind_int64(year))
        except (TypeError, OverflowError) as e:
            statement.reset()
            self._emit(StoreEvent(
                StoreErrorKind.BIND_FAILED, "Could not bind year", {"year": year, "error": str(e)}
            ))
            return []
        return self._collect(statement) or []

    def count(self) -> int:
        """Number of rows in the table; ``0`` when it cannot be counted."""
        self._begin()
        statement = self._prepare(StatementKind.COUNT)
        if statement is None:
            return 0
        try:
            row = statement.step()
            if row is None or len(row) != 1:
                self._emit(StoreEvent(
                    StoreErrorKind.EXECUTION_FAILED, "Count returned no single value", {"row": row}
                ))
                return 0
            return decode_int(row[0], 0, self._emit)
        except sqlite3.Error as e:
            self._emit(StoreEvent(
                StoreErrorKind.EXECUTION_FAILED, "Could not count rows", {"error": str(e)}
            ))
            return 0
        finally:
            statement.reset()

    def delete_all(self) -> bool:
        """Delete every row. Does not refresh the ``movies`` snapshot."""
        self._begin()
        statement = self._prepare(StatementKind.DELETE_ALL)
        if statement is None:
            return False
        try:
            statement.step()
            return True
        except sqlite3.Error as e:
            self._emit(StoreEvent(
                StoreErrorKind.EXECUTION_FAILED, "Could not delete rows", {"error": str(e)}
            ))
            return False
        finally:
            statement.reset()

    # -- helpers ---------------------------------------------------------------

    def _begin(self) -> None:
        self.last_error = None

    def _emit(self, event: StoreEvent) -> None:
        if event.is_failure:
            self.last_error = event
        try:
            self._observer(event)
        except Exception:
            logger.exception("Store observer failed")

    def _require_open(self, kind: StatementKind) -> bool:
        if self.is_open:
            return True
        self._emit(StoreEvent(
            StoreErrorKind.CONNECTION_UNUSABLE, "DB connection is not open", {"operation": kind.value}
        ))
        return False

    def _prepare(self, kind: StatementKind) -> Optional[Statement]:
        if not self._require_open(kind):
            return None
        return self._db.prepare(kind)

    def _step_until_not_busy(self, statement: Statement, title: str) -> None:
        retries = 0
        while True:
            try:
                statement.step()
                return
            except sqlite3.OperationalError as e:
                if not is_busy(e):
                    raise
                if self.busy_max_retries is not None and retries >= self.busy_max_retries:
                    raise
                retries += 1
                self._emit(StoreEvent(
                    StoreErrorKind.BUSY,
                    "Database busy, retrying insert",
                    {"title": title, "retry": retries},
                ))
                time.sleep(self.busy_retry_interval)

    def _collect(self, statement: Statement) -> Optional[list[Movie]]:
        """Step ``statement`` to completion, decoding each well-formed row."""
        movies: list[Movie] = []
        try:
            while True:
                row = statement.step()
                if row is None:
                    break
                if len(row) != len(MOVIE_COLUMNS):
                    self._emit(StoreEvent(
                        StoreErrorKind.MALFORMED_ROW,
                        "Unexpected number of columns",
                        {"expected": len(MOVIE_COLUMNS), "actual": len(row)},
                    ))
                    continue
                movies.append(self._decode_movie(row))
        except sqlite3.Error as e:
            self._emit(StoreEvent(
                StoreErrorKind.EXECUTION_FAILED,
                f"Could not read rows for {statement.kind.value}",
                {"error": str(e)},
            ))
            return None
        finally:
            statement.reset()
        return movies

    def _decode_movie(self, row: tuple) -> Movie:
        return Movie.create(
            title=decode_text(row[1], 1, self._emit),
            year=decode_int(row[2], 2, self._emit),
            uuid_string=decode_text(row[0], 0, self._emit),
        )


def open(name: str, *, settings: Optional[Settings] = None,
         observer: Optional[StoreObserver] = None) -> MovieStore:
    """Open (creating if needed) the store called ``name``."""
    return MovieStore(name, settings=settings, observer=observer)
