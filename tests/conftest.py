"""Shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from postpad.ids import IdGenerator
from postpad.storage import MemoryBackend
from postpad.store import PostStore


class FakeClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 1) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep every test away from the real ~/postpad and ~/.config."""
    monkeypatch.setenv("POSTPAD_HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("POSTPAD_LOG_LEVEL", raising=False)
    return tmp_path / "home"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend, clock):
    ids = IdGenerator(clock=lambda: 1_700_000_000_000)
    s = PostStore(backend, clock=clock, ids=ids)
    s.load()
    return s
