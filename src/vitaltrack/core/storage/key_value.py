"""Asynchronous string-keyed storage media.

Every higher-level store persists whole serialized collections under a
handful of string keys. Anything that can get, set and remove a string by
key satisfies :class:`KeyValueStore`.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from vitaltrack.core.storage.database import HealthDatabase

logger = logging.getLogger(__name__)


class StorageUnavailableError(Exception):
    """Raised when the underlying storage medium cannot be read or written."""


@runtime_checkable
class KeyValueStore(Protocol):
    """Opaque asynchronous key-value storage medium."""

    async def get_item(self, key: str) -> str | None:
        """Return the stored string, or None when the key is absent."""
        ...

    async def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    async def remove_item(self, key: str) -> None:
        """Delete ``key``. Removing an absent key is not an error."""
        ...


class SQLiteKeyValueStore:
    """KeyValueStore backed by the ``key_value_store`` table.

    Usage::

        db = HealthDatabase("~/.vitaltrack/health.db")
        db.initialize()
        kv = SQLiteKeyValueStore(db)
        await kv.set_item("users", "[]")
    """

    def __init__(self, database: HealthDatabase) -> None:
        self._db = database

    async def get_item(self, key: str) -> str | None:
        try:
            row = self._db.connection.execute(
                "SELECT value FROM key_value_store WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            logger.error("Storage read failed for key %r: %s", key, exc)
            raise StorageUnavailableError(f"Failed to read {key!r}: {exc}") from exc
        return row[0] if row is not None else None

    async def set_item(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO key_value_store (key, value, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(key) DO UPDATE SET
                       value = excluded.value,
                       updated_at = excluded.updated_at""",
                (key, value, now),
            )
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Storage write failed for key %r: %s", key, exc)
            raise StorageUnavailableError(f"Failed to write {key!r}: {exc}") from exc

    async def remove_item(self, key: str) -> None:
        try:
            conn = self._db.connection
            conn.execute("DELETE FROM key_value_store WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as exc:
            logger.error("Storage delete failed for key %r: %s", key, exc)
            raise StorageUnavailableError(f"Failed to remove {key!r}: {exc}") from exc

    def keys(self) -> list[str]:
        """List stored keys (diagnostics only)."""
        rows = self._db.connection.execute(
            "SELECT key FROM key_value_store ORDER BY key"
        ).fetchall()
        return [row[0] for row in rows]


class InMemoryKeyValueStore:
    """Dict-backed KeyValueStore.

    Each primitive yields to the event loop once before touching the dict,
    like a real asynchronous medium would, so overlapping read-modify-write
    sequences interleave the same way they do against a device store.
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get_item(self, key: str) -> str | None:
        await asyncio.sleep(0)
        return self._data.get(key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.sleep(0)
        self._data[key] = value

    async def remove_item(self, key: str) -> None:
        await asyncio.sleep(0)
        self._data.pop(key, None)

    def raw(self, key: str) -> str | None:
        """Synchronous peek at a stored value, for tests and diagnostics."""
        return self._data.get(key)
