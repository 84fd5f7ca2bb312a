"""
Memory Storage Backend Module

In-process key-value store. Values are kept as JSON text so that they
round-trip exactly the way they would through a real substrate.
"""

import json
import threading
from typing import Dict, List, Optional

from adaptive_learning.common.logger import app_logger
from adaptive_learning.common.exceptions import StorageError
from adaptive_learning.storage.base import KeyValueStore, JSONValue

logger = app_logger.getChild("storage.memory")


class MemoryStore(KeyValueStore):
    """
    Dictionary-backed key-value store.

    Thread-safe; suitable for development, tests and single-process
    deployments.
    """

    def __init__(self, name: str = "memory"):
        """
        Initialize the memory store.

        Args:
            name: Name for this storage backend (default: "memory")
        """
        self._data: Dict[str, str] = {}
        self._lock = threading.RLock()
        self._name = name

    @property
    def name(self) -> str:
        """Get the name of this storage backend."""
        return self._name

    async def get(self, key: str) -> Optional[JSONValue]:
        with self._lock:
            raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Corrupt value under {key}", key=key, original_exception=e) from e

    async def set(self, key: str, value: JSONValue) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key} is not JSON-serializable", key=key,
                               original_exception=e) from e
        with self._lock:
            self._data[key] = raw
        logger.debug(f"Stored {len(raw)} bytes under {key}")

    async def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    async def has(self, key: str) -> bool:
        with self._lock:
            return key in self._data

    def keys(self) -> List[str]:
        """Return a snapshot of all stored keys."""
        with self._lock:
            return list(self._data.keys())

    def put_raw(self, key: str, raw: str) -> None:
        """Store already-encoded text under a key without validation."""
        with self._lock:
            self._data[key] = raw
