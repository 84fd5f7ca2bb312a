"""
Base Storage Module

Defines the key-value persistence interface the engine talks to. Values are
JSON-compatible structures; backends decide how they are encoded at rest.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


# JSON-compatible value (dict, list, str, int, float, bool or None)
JSONValue = Any


class KeyValueStore(ABC):
    """
    Abstract interface for key-value storage backends.

    Concrete implementations raise StorageError for substrate failures;
    repositories decide whether such a failure is fatal.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the name of this storage backend."""
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[JSONValue]:
        """
        Retrieve a value.

        Args:
            key: Storage key

        Returns:
            The decoded value, or None if the key does not exist
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: JSONValue) -> None:
        """
        Store a value, replacing any previous one.

        Args:
            key: Storage key
            value: JSON-compatible value
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a value.

        Args:
            key: Storage key

        Returns:
            Whether a value was deleted
        """
        pass

    @abstractmethod
    async def has(self, key: str) -> bool:
        """
        Check whether a key exists.

        Args:
            key: Storage key

        Returns:
            True if the key exists
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the backend."""
        pass
