"""Shared CLI utilities."""

import asyncio
from contextlib import asynccontextmanager

import structlog
from rich.console import Console

from habits import HabitStore, SQLiteKeyValueStore

console = Console()
logger = structlog.get_logger()


def get_components() -> dict:
    """Load config and build the storage backend it points at."""
    from cli.config import get_paths, load_config_model

    config_model = load_config_model()
    config = config_model.to_dict()
    paths = get_paths(config)

    return {
        "config": config,
        "config_model": config_model,
        "paths": paths,
        "storage": SQLiteKeyValueStore(paths["data_db"]),
    }


@asynccontextmanager
async def open_store(c: dict):
    """Hydrated store for one command; pending writes are flushed on exit."""
    store = HabitStore(
        c["storage"],
        dedupe_same_day=c["config_model"].store.dedupe_same_day,
    )
    await store.load()
    try:
        yield store
    finally:
        await store.flush()


def run(coro):
    """Run a command coroutine to completion."""
    return asyncio.run(coro)


def find_habit(store: HabitStore, habit_id: str):
    """Exact id, else a unique id prefix. Prints a notice when nothing matches."""
    habit = store.get_habit(habit_id)
    if habit:
        return habit
    matches = [h for h in store.habits if h.id.startswith(habit_id)]
    if len(matches) == 1:
        return matches[0]
    if matches:
        console.print(f"[yellow]Ambiguous id prefix:[/] {habit_id}")
    else:
        console.print(f"[yellow]No habit with id:[/] {habit_id}")
    return None
