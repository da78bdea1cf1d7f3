"""JSON collections over a key-value medium.

Higher-level stores never do partial updates: they read a whole collection,
change it in memory and write the whole collection back. Those
read-modify-write sequences must run inside :meth:`CollectionStore.locked`
for the key they touch, otherwise a second writer can read before the first
one persists and silently drop its change.
"""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from vitaltrack.core.storage.key_value import KeyValueStore

logger = logging.getLogger(__name__)

# Storage keys (shared with the on-device layout)
USERS_KEY = "users"
CURRENT_USER_KEY = "currentUser"
HEALTH_DATA_KEY = "healthData"
NOTIFICATION_SETTINGS_KEY = "notificationSettings"


class CollectionStore:
    """Serializes collections to JSON and serializes writers per key.

    Usage::

        collections = CollectionStore(InMemoryKeyValueStore())
        async with collections.locked(USERS_KEY):
            users = await collections.read_list(USERS_KEY)
            users.append({"id": "1"})
            await collections.write_list(USERS_KEY, users)
    """

    def __init__(self, medium: KeyValueStore) -> None:
        self._medium = medium
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def locked(self, key: str) -> AsyncIterator[None]:
        """Hold the writer lock for ``key`` for the duration of the block."""
        async with self.lock_for(key):
            yield

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    async def read_list(self, key: str) -> list[dict[str, Any]]:
        """Read a JSON array of objects.

        A missing key or undecodable payload reads as an empty list.
        Medium failures propagate as ``StorageUnavailableError``.
        """
        raw = await self._medium.get_item(key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Corrupt collection under %r; reading as empty", key)
            return []
        if not isinstance(data, list):
            logger.warning("Collection under %r is not a list; reading as empty", key)
            return []
        return [item for item in data if isinstance(item, dict)]

    async def write_list(self, key: str, items: list[dict[str, Any]]) -> None:
        await self._medium.set_item(key, json.dumps(items, separators=(",", ":")))

    # ------------------------------------------------------------------
    # Single documents
    # ------------------------------------------------------------------

    async def read_document(self, key: str) -> dict[str, Any] | None:
        """Read a single JSON object, or None if absent or undecodable."""
        raw = await self._medium.get_item(key)
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning("Corrupt document under %r; reading as absent", key)
            return None
        return data if isinstance(data, dict) else None

    async def write_document(self, key: str, document: dict[str, Any]) -> None:
        await self._medium.set_item(key, json.dumps(document, separators=(",", ":")))

    async def remove(self, key: str) -> None:
        await self._medium.remove_item(key)
