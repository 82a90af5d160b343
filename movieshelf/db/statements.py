"""Compiled statements and the per-operation statement cache."""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from movieshelf.db.schema import STATEMENT_SQL, StatementKind

logger = logging.getLogger(__name__)

# Primary result codes for SQLITE_BUSY and SQLITE_LOCKED
_BUSY_CODES = frozenset({5, 6})


def is_busy(exc: sqlite3.Error) -> bool:
    """True when ``exc`` reports transient lock contention."""
    code = getattr(exc, "sqlite_errorcode", None)
    if code is not None:
        return (code & 0xFF) in _BUSY_CODES
    message = str(exc).lower()
    return "locked" in message or "busy" in message


class Statement:
    """
    A compiled statement tied to one fixed SQL text.

    ``bind`` stores the parameters, ``step`` runs the statement on first call
    and yields one row per call after that (``None`` once done), and
    ``reset`` clears both so the statement is ready for its next use.
    The compiled plan itself lives in the connection's statement cache,
    keyed by the SQL text.
    """

    def __init__(self, conn: sqlite3.Connection, kind: StatementKind, sql: str):
        self.kind = kind
        self.sql = sql
        self.param_count = sql.count("?")
        self.finalized = False
        self._conn = conn
        self._params: tuple = ()
        self._cursor: Optional[sqlite3.Cursor] = None

    @classmethod
    def compile(cls, conn: sqlite3.Connection, kind: StatementKind,
                sql: Optional[str] = None) -> "Statement":
        """Compile ``sql`` against the live schema. Raises ``sqlite3.Error`` on failure."""
        sql = sql or STATEMENT_SQL[kind]
        if not sqlite3.complete_statement(sql):
            raise sqlite3.ProgrammingError(f"Incomplete SQL for {kind.value}: {sql}")
        # EXPLAIN prepares the statement without running it
        conn.execute(f"EXPLAIN {sql}", (None,) * sql.count("?")).fetchall()
        return cls(conn, kind, sql)

    @property
    def is_active(self) -> bool:
        return self._cursor is not None

    def bind(self, *values) -> None:
        self._ensure_live()
        if len(values) != self.param_count:
            raise sqlite3.ProgrammingError(
                f"{self.kind.value} takes {self.param_count} parameters, {len(values)} supplied"
            )
        self._params = tuple(values)

    def step(self) -> Optional[tuple]:
        self._ensure_live()
        if self._cursor is None:
            self._cursor = self._conn.execute(self.sql, self._params)
        return self._cursor.fetchone()

    def reset(self) -> None:
        if self._cursor is not None:
            self._cursor.close()
            self._cursor = None
        self._params = ()

    def finalize(self) -> None:
        if self.finalized:
            return
        self.reset()
        self.finalized = True

    def _ensure_live(self) -> None:
        if self.finalized:
            raise sqlite3.ProgrammingError(f"Statement {self.kind.value} is finalized")


class StatementCache:
    """At most one compiled statement per operation kind, created on first use."""

    def __init__(self):
        self._slots: dict[StatementKind, Statement] = {}

    def __contains__(self, kind: StatementKind) -> bool:
        return kind in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    def get(self, kind: StatementKind) -> Optional[Statement]:
        return self._slots.get(kind)

    def prepare(self, conn: sqlite3.Connection, kind: StatementKind) -> Statement:
        """Return the cached statement, compiling it first if the slot is empty.

        A failed compilation raises and leaves the slot empty.
        """
        statement = self._slots.get(kind)
        if statement is None:
            statement = Statement.compile(conn, kind)
            self._slots[kind] = statement
            logger.info(f"Compiled {kind.value} statement")
        return statement

    def finalize_all(self) -> None:
        for statement in self._slots.values():
            statement.finalize()
        self._slots.clear()
