"""Store diagnostics: events emitted by the store and the default logging sink."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class StoreErrorKind(str, Enum):
    CONNECTION_UNUSABLE = "connection_unusable"
    COMPILE_FAILED = "compile_failed"
    EXECUTION_FAILED = "execution_failed"
    BUSY = "busy"
    BIND_FAILED = "bind_failed"
    TYPE_MISMATCH = "type_mismatch"
    MALFORMED_ROW = "malformed_row"
    LENGTH_MISMATCH = "length_mismatch"


# Kinds that only describe a recoverable condition; they never become ``last_error``
DIAGNOSTIC_KINDS = frozenset({
    StoreErrorKind.BUSY,
    StoreErrorKind.MALFORMED_ROW,
    StoreErrorKind.LENGTH_MISMATCH,
})


@dataclass(frozen=True)
class StoreEvent:
    """A notable condition met by the store while serving a call."""

    kind: StoreErrorKind
    message: str
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def is_failure(self) -> bool:
        return self.kind not in DIAGNOSTIC_KINDS

    def __str__(self) -> str:
        if not self.context:
            return f"[{self.kind.value}] {self.message}"
        details = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"[{self.kind.value}] {self.message} ({details})"


StoreObserver = Callable[[StoreEvent], None]

_LEVELS = {
    StoreErrorKind.BUSY: logging.WARNING,
    StoreErrorKind.MALFORMED_ROW: logging.INFO,
    StoreErrorKind.LENGTH_MISMATCH: logging.INFO,
}


def log_event(event: StoreEvent) -> None:
    """Default observer: write the event to the module logger."""
    logger.log(_LEVELS.get(event.kind, logging.ERROR), str(event))
