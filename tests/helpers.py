"""Shared helpers for the store tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Optional

from movieshelf.config import Settings
from movieshelf.db.events import StoreEvent
from movieshelf.db.movie_store import MovieStore


class EventRecorder:
    """Observer that keeps every event it receives."""

    def __init__(self):
        self.events: list[StoreEvent] = []

    def __call__(self, event: StoreEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list:
        return [e.kind for e in self.events]


def make_settings(data_dir: Path, **overrides) -> Settings:
    values = {
        "MOVIESHELF_DATA_DIR": str(data_dir),
        "MOVIESHELF_BUSY_RETRY_INTERVAL": 0.0,
    }
    values.update(overrides)
    return Settings(**values)


class StoreTestCase:
    """Mixin giving each test its own data directory and store."""

    store_name = "test"

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name)
        self.recorder = EventRecorder()
        self.store = self.make_store()

    def tearDown(self):
        self.store.close()
        self._tmp.cleanup()

    def make_store(self, name: Optional[str] = None, **overrides) -> MovieStore:
        return MovieStore(
            name or self.store_name,
            settings=make_settings(self.data_dir, **overrides),
            observer=self.recorder,
        )
