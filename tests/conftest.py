"""Shared test fixtures for TaskQuest tests.

This module provides common fixtures used across all test modules:
- A controllable clock in a fixed timezone
- A seeded random source for challenge generation
- In-memory and temporary SQLite blob stores
- A started AppStore wired to all of the above
- A mock Anthropic client for the AI suggestions

Usage:
    def test_something(store, clock):
        store.add_task("Write report")
        clock.advance(hours=1)
        ...
"""

import os
import random
import tempfile
from collections.abc import Generator
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from taskquest.config_models import AIConfig
from taskquest.logging_config import setup_logging
from taskquest.state.persistence import MemoryBlobStore
from taskquest.state.service import AppStore
from taskquest.tasks.models import AppState, Task


# ─────────────────────────────────────────────────────────────────────────────
# Logging
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Route structlog through stdlib logging at WARNING for the whole run."""
    setup_logging(level="WARNING", json_output=False)


# ─────────────────────────────────────────────────────────────────────────────
# Time Fixtures
# ─────────────────────────────────────────────────────────────────────────────

# Fixed UTC-3 so "same local day" checks do not depend on the machine
LOCAL_TZ = timezone(timedelta(hours=-3))
START = datetime(2024, 3, 15, 10, 0, 0, tzinfo=LOCAL_TZ)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now

    def set(self, now: datetime) -> datetime:
        self.now = now
        return now


@pytest.fixture
def now() -> datetime:
    """Fixed reference time (15 March 2024, 10:00 local)."""
    return START


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source."""
    return random.Random(42)


# ─────────────────────────────────────────────────────────────────────────────
# Storage Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_db() -> Generator[Path, None, None]:
    """Create a temporary database file for testing.

    The database file is automatically deleted after the test completes.

    Yields:
        Path to the temporary database file
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    yield db_path

    # Cleanup
    if db_path.exists():
        os.unlink(db_path)


@pytest.fixture
def blob_store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def store(blob_store, clock, rng) -> AppStore:
    """Started AppStore over an in-memory blob store.

    Starting generates the first daily challenge.
    """
    app_store = AppStore(blob_store, clock=clock, rng=rng)
    app_store.start()
    return app_store


# ─────────────────────────────────────────────────────────────────────────────
# State Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def empty_state() -> AppState:
    return AppState()


def make_task(title: str = "Write report", created_at: datetime = START, **fields) -> Task:
    """Build a task with sensible defaults."""
    return Task(title=title, created_at=created_at, **fields)


@pytest.fixture
def task_factory():
    return make_task


# ─────────────────────────────────────────────────────────────────────────────
# AI Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch):
    """Keep tests off the real API; tests that need a reply inject a mock client."""
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)


@pytest.fixture
def ai_config() -> AIConfig:
    return AIConfig(enabled=True, debounce_ms=10, min_title_length=6)


def make_ai_client(text: str = "", side_effect=None) -> MagicMock:
    """Mock AsyncAnthropic client whose messages.create returns ``text``."""
    message = MagicMock()
    message.content = [MagicMock(text=text)]

    client = MagicMock()
    client.messages.create = AsyncMock(return_value=message, side_effect=side_effect)
    return client


@pytest.fixture
def ai_client_factory():
    return make_ai_client
