"""Habit/log state engine: habits, completion logs and weekly reviews."""

from .dates import Clock, FixedClock
from .export import HabitExporter
from .models import Habit, HabitInput, HabitLog, ReviewInput, ReviewLog
from .storage import KeyValueStore, MemoryKeyValueStore, SQLiteKeyValueStore
from .store import HabitsError, HabitStore, PersistenceError

__all__ = [
    "Clock",
    "FixedClock",
    "Habit",
    "HabitExporter",
    "HabitInput",
    "HabitLog",
    "HabitStore",
    "HabitsError",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "PersistenceError",
    "ReviewInput",
    "ReviewLog",
    "SQLiteKeyValueStore",
]
