"""Async string key/value stores the habit store persists into.

The store only needs ``get_item``/``set_item``/``remove_item``; values are
opaque strings (JSON arrays in practice) returned verbatim.
"""

import sqlite3
from contextlib import closing
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

import structlog

logger = structlog.get_logger()

HABITS_KEY = "tinywins_habits"
LOGS_KEY = "tinywins_logs"
REVIEWS_KEY = "tinywins_reviews"


@runtime_checkable
class KeyValueStore(Protocol):
    async def get_item(self, key: str) -> Optional[str]: ...

    async def set_item(self, key: str, value: str) -> None: ...

    async def remove_item(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Dict-backed store. Survives as long as the instance does."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        self.data[key] = value

    async def remove_item(self, key: str) -> None:
        self.data.pop(key, None)


def wal_connect(db_path: str | Path) -> sqlite3.Connection:
    """Open SQLite connection with WAL journal mode."""
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


class SQLiteKeyValueStore:
    """Durable on-device store: one ``kv`` table in a WAL-mode SQLite file."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path).expanduser()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self):
        with closing(wal_connect(self.db_path)) as conn, conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)

    async def get_item(self, key: str) -> Optional[str]:
        with closing(wal_connect(self.db_path)) as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return row[0] if row else None

    async def set_item(self, key: str, value: str) -> None:
        with closing(wal_connect(self.db_path)) as conn, conn:
            conn.execute(
                """INSERT INTO kv (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value,
                                               updated_at = excluded.updated_at""",
                (key, value),
            )
        logger.debug("kv_set", key=key, size=len(value))

    async def remove_item(self, key: str) -> None:
        with closing(wal_connect(self.db_path)) as conn, conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def keys(self) -> list[str]:
        with closing(wal_connect(self.db_path)) as conn:
            return [r[0] for r in conn.execute("SELECT key FROM kv ORDER BY key").fetchall()]
