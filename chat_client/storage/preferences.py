"""
Preference Store - Small key/value state that survives restarts.
Replaces the browser's local storage with a JSON file behind StorageInterface.
"""

import asyncio
import json
import logging
from typing import Dict, Optional, Set

from .interface import StorageInterface

logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = "authToken"
AUTH_TOKEN_EXPIRY_KEY = "authTokenExpiry"
ACTIVE_SESSION_ID_KEY = "activeSessionId"
ACTIVE_SESSION_INFO_KEY = "activeSessionInfo"


class PreferenceStore:
    """
    Write-through key/value cache mirrored to a single JSON document.

    Reads and writes are synchronous against the in-memory cache. Every write
    schedules a background save of the whole document; saves are serialized
    and best-effort, a failed save is logged and reconciled by the next one.
    """

    def __init__(self, storage: StorageInterface, path: str = "client_state.json"):
        """
        Initialize the preference store.

        Args:
            storage: StorageInterface implementation (typically LocalStorage)
            path: Relative path of the JSON document
        """
        self.storage = storage
        self.path = path
        self._values: Dict[str, str] = {}
        self._write_lock = asyncio.Lock()
        self._pending: Set[asyncio.Task] = set()

    async def load(self) -> None:
        """Read the persisted document into the cache. Missing or corrupt documents load as empty."""
        content = await self.storage.load(self.path)
        if content is None:
            self._values = {}
            return
        try:
            data = json.loads(content.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Discarding unreadable client state {self.path}: {e}")
            self._values = {}
            return
        if not isinstance(data, dict):
            self._values = {}
            return
        self._values = {str(k): str(v) for k, v in data.items() if v is not None}

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value
        self._schedule_save()

    def remove(self, *keys: str) -> None:
        changed = False
        for key in keys:
            if self._values.pop(key, None) is not None:
                changed = True
        if changed:
            self._schedule_save()

    async def flush(self) -> None:
        """Wait for every scheduled save to finish."""
        while True:
            pending = [task for task in self._pending if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    def _schedule_save(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(f"No running event loop, client state change to {self.path} not persisted yet")
            return
        task = loop.create_task(self._save())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _save(self) -> None:
        async with self._write_lock:
            # Snapshot at write time so the latest state wins
            content = json.dumps(self._values, indent=2, ensure_ascii=False)
            if not await self.storage.save(self.path, content):
                logger.warning(f"Client state not persisted to {self.path}")
