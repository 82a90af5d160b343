"""Parameter binding and column decoding between Python values and SQLite storage."""

from __future__ import annotations

import logging
import operator
import sys
from typing import Any

from movieshelf.db.events import StoreErrorKind, StoreEvent, StoreObserver

logger = logging.getLogger(__name__)

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


class EngineText(bytes):
    """UTF-8 bytes of a TEXT value exactly as the engine handed them over.

    Installed as the connection's ``text_factory`` so TEXT and BLOB columns
    stay distinguishable and the engine's byte length is kept for checking.
    """


def column_type_name(value: Any) -> str:
    """Human-readable SQLite storage class of a fetched value."""
    if value is None:
        return "Null"
    if isinstance(value, int):
        return "Integer"
    if isinstance(value, float):
        return "Double"
    if isinstance(value, (EngineText, str)):
        return "Text"
    if isinstance(value, (bytes, memoryview)):
        return "BLOB"
    return "Unknown"


# -- binding -------------------------------------------------------------------

def bind_text(value: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"Expected text, got {type(value).__name__}")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise TypeError(f"Text is not valid UTF-8: {e.reason}") from e
    logger.debug(f"Bound text value: {value!r}")
    return value


def bind_int64(value: int) -> int:
    if isinstance(value, bool):
        raise TypeError("Expected an integer, got bool")
    number = operator.index(value)
    if not INT64_MIN <= number <= INT64_MAX:
        raise OverflowError(f"{number} does not fit in a 64-bit integer")
    return number


# -- decoding ------------------------------------------------------------------

def decode_text(value: Any, column: int, emit: StoreObserver) -> str:
    """Decode a TEXT column; ``""`` on type mismatch."""
    if isinstance(value, str):
        return value
    if not isinstance(value, EngineText):
        emit(StoreEvent(
            StoreErrorKind.TYPE_MISMATCH,
            "Incorrect column type",
            {"column": column, "expected": "Text", "actual": column_type_name(value)},
        ))
        return ""

    text = bytes(value).decode("utf-8", errors="replace")
    decoded_bytes = len(text.encode("utf-8"))
    if decoded_bytes != len(value):
        emit(StoreEvent(
            StoreErrorKind.LENGTH_MISMATCH,
            "Decoded text length differs from stored length",
            {"column": column, "stored": len(value), "decoded": decoded_bytes},
        ))
    logger.debug(f"Column {column} text: {text!r}")
    return text


def decode_int(value: Any, column: int, emit: StoreObserver) -> int:
    """Decode an INTEGER column; ``0`` on type mismatch or overflow of the native int."""
    if isinstance(value, bool) or not isinstance(value, int):
        emit(StoreEvent(
            StoreErrorKind.TYPE_MISMATCH,
            "Incorrect column type",
            {"column": column, "expected": "Integer", "actual": column_type_name(value)},
        ))
        return 0
    # SQLite integers are 64-bit, so on 64-bit hosts this never fires
    if not -sys.maxsize - 1 <= value <= sys.maxsize:
        emit(StoreEvent(
            StoreErrorKind.TYPE_MISMATCH,
            "Integer wider than the native integer",
            {"column": column, "value": value, "max": sys.maxsize},
        ))
        return 0
    logger.debug(f"Column {column} integer: {value}")
    return value
