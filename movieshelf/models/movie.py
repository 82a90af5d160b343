"""Movie domain model — the single record type kept by the store."""

from __future__ import annotations

import re
from uuid import UUID, uuid4
from dataclasses import dataclass, field
from typing import Optional

_CANONICAL_UUID = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}"
)


def parse_uuid(raw: Optional[str]) -> Optional[UUID]:
    """Parse a canonical 36-character uuid string; ``None`` if it is not one."""
    if not isinstance(raw, str) or not _CANONICAL_UUID.fullmatch(raw):
        return None
    try:
        return UUID(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class Movie:
    """A movie row. Immutable once created; equality is structural."""

    title: str
    year: int
    uuid: UUID = field(default_factory=uuid4)

    @classmethod
    def create(cls, title: str, year: int, uuid_string: Optional[str] = None) -> "Movie":
        """Build a movie, generating a fresh uuid when ``uuid_string`` is absent or invalid."""
        parsed = parse_uuid(uuid_string)
        return cls(title=title, year=year, uuid=parsed or uuid4())

    @property
    def id(self) -> UUID:
        return self.uuid

    @property
    def uuid_string(self) -> str:
        return str(self.uuid)

    def __str__(self) -> str:
        return f"({self.title}|{self.year}|{str(self.uuid).upper()})"

