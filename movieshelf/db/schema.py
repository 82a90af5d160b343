"""Database schema DDL and the fixed statement texts used by the store."""

from __future__ import annotations

from enum import Enum

SCHEMA_DDL = (
    "CREATE TABLE IF NOT EXISTS Movies("
    "uuid CHAR(36) NOT NULL UNIQUE, "
    "title VARCHAR(25), "
    "year INTEGER, "
    "id INTEGER PRIMARY KEY AUTOINCREMENT);"
)


class StatementKind(str, Enum):
    COUNT = "count"
    DELETE_ALL = "delete_all"
    INSERT = "insert"
    RETRIEVE_ALL = "retrieve_all"
    FIND_BY_YEAR = "find_by_year"


STATEMENT_SQL: dict[StatementKind, str] = {
    StatementKind.COUNT: "SELECT COUNT(*) FROM Movies;",
    StatementKind.DELETE_ALL: "DELETE FROM Movies;",
    StatementKind.INSERT: "INSERT INTO Movies (uuid, title, year) VALUES (?, ?, ?);",
    StatementKind.RETRIEVE_ALL: "SELECT uuid, title, year FROM Movies;",
    StatementKind.FIND_BY_YEAR: (
        "SELECT uuid, title, year FROM Movies WHERE year = ? ORDER BY title LIMIT 30 OFFSET 0;"
    ),
}

# Columns yielded by the two select statements
MOVIE_COLUMNS = ("uuid", "title", "year")
