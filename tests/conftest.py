"""Shared test fixtures for tinywins."""

import json
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from habits.dates import FixedClock  # noqa: E402
from habits.storage import HABITS_KEY, LOGS_KEY, MemoryKeyValueStore  # noqa: E402
from habits.store import HabitStore  # noqa: E402

# A Wednesday.
TODAY = datetime(2026, 1, 14, 9, 30)
TODAY_STR = "2026-01-14"


@pytest.fixture
def clock():
    return FixedClock(TODAY)


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


def make_habit(**overrides) -> dict:
    """Persisted-shape habit record, as the app writes it."""
    habit = {
        "id": "habit-1",
        "title": "Morning Run",
        "icon": "walk",
        "iconColor": "#FF6B6B",
        "gradientColors": ["#FF6B6B", "#FF8E53"],
        "goal": 1,
        "unit": "run",
        "frequency": "Daily",
        "current": 0,
        "streak": 0,
        "bestStreak": 0,
        "weekData": [0, 0, 0, 0, 0, 0, 0],
        "createdAt": 1736000000000,
    }
    habit.update(overrides)
    return habit


def make_log(**overrides) -> dict:
    log = {
        "id": "log-1",
        "habitId": "habit-1",
        "date": TODAY_STR,
        "status": "done",
        "timestamp": 1736900000000,
    }
    log.update(overrides)
    return log


@pytest.fixture
def seed(kv):
    """Write persisted-shape records into the kv store before a store loads."""

    def _seed(habits=None, logs=None):
        if habits is not None:
            kv.data[HABITS_KEY] = json.dumps(habits)
        if logs is not None:
            kv.data[LOGS_KEY] = json.dumps(logs)
        return kv

    return _seed


@pytest.fixture
def make_store(kv, clock):
    """Factory for hydrated stores over the shared kv + clock."""

    async def _make(**kwargs) -> HabitStore:
        store = HabitStore(kwargs.pop("storage", kv), clock=clock, **kwargs)
        await store.load()
        return store

    return _make


@pytest.fixture
def habit_record():
    return make_habit


@pytest.fixture
def log_record():
    return make_log
