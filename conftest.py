"""Shared pytest fixtures for the paste service tests."""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from pastebox.id_generator import IDGenerator
from pastebox.paste_store import PasteStore
from pastebox.storage import Storage


class FakeClock:
    """Controllable clock returning a fixed UTC time until advanced."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock():
    """Clock frozen at a whole second."""
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def temp_storage():
    """Create a temporary SQLite storage instance for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        db_path = Path(tmpdir) / "test_pastebin.db"
        yield Storage(str(db_path))


@pytest.fixture
def paste_store(temp_storage, clock):
    """PasteStore over temporary storage, driven by the fake clock."""
    return PasteStore(
        storage=temp_storage,
        id_generator=IDGenerator(id_length=6),
        clock=clock,
    )
