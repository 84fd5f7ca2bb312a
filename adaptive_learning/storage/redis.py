"""
Redis Storage Backend Module

Key-value store backed by Redis. Values are JSON-encoded and every key gets
the configured prefix so several deployments can share one server.
"""

import json
from typing import Optional

import redis
from redis.exceptions import RedisError

from adaptive_learning.common.logger import app_logger
from adaptive_learning.common.exceptions import StorageError
from adaptive_learning.storage.base import KeyValueStore, JSONValue

logger = app_logger.getChild("storage.redis")


class RedisStore(KeyValueStore):
    """
    Redis key-value store implementation.

    Wraps a synchronous redis-py client; every substrate failure is raised
    as StorageError.
    """

    def __init__(
        self,
        redis_client: Optional[redis.Redis] = None,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
        key_prefix: str = "adaptive_learning:",
        name: str = "redis"
    ):
        """
        Initialize the Redis store.

        Args:
            redis_client: Optional existing Redis client to use
            host: Redis server hostname (default: "localhost")
            port: Redis server port (default: 6379)
            db: Redis database number (default: 0)
            password: Redis password (optional)
            key_prefix: Prefix for all Redis keys
            name: Name for this storage backend (default: "redis")
        """
        self._key_prefix = key_prefix
        self._name = name

        if redis_client is not None:
            self._redis = redis_client
        else:
            self._redis = redis.Redis(
                host=host,
                port=port,
                db=db,
                password=password,
                decode_responses=False
            )

        try:
            self._redis.ping()
        except RedisError as e:
            logger.warning(f"Redis connection test failed: {e}")

    @property
    def name(self) -> str:
        """Get the name of this storage backend."""
        return self._name

    def _build_key(self, key: str) -> str:
        """
        Build a Redis key with the configured prefix.

        Args:
            key: The original storage key

        Returns:
            The prefixed Redis key
        """
        return f"{self._key_prefix}{key}"

    async def get(self, key: str) -> Optional[JSONValue]:
        redis_key = self._build_key(key)
        try:
            data = self._redis.get(redis_key)
        except RedisError as e:
            raise StorageError(f"Redis get failed for {key}: {e}", key=key, original_exception=e) from e

        if data is None:
            return None

        try:
            if isinstance(data, bytes):
                data = data.decode('utf-8')
            return json.loads(data)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise StorageError(f"Corrupt value under {key}", key=key, original_exception=e) from e

    async def set(self, key: str, value: JSONValue) -> None:
        try:
            payload = json.dumps(value).encode('utf-8')
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key} is not JSON-serializable", key=key,
                               original_exception=e) from e
        try:
            self._redis.set(self._build_key(key), payload)
        except RedisError as e:
            raise StorageError(f"Redis set failed for {key}: {e}", key=key, original_exception=e) from e

    async def delete(self, key: str) -> bool:
        try:
            return bool(self._redis.delete(self._build_key(key)))
        except RedisError as e:
            raise StorageError(f"Redis delete failed for {key}: {e}", key=key, original_exception=e) from e

    async def has(self, key: str) -> bool:
        try:
            return bool(self._redis.exists(self._build_key(key)))
        except RedisError as e:
            raise StorageError(f"Redis exists failed for {key}: {e}", key=key, original_exception=e) from e

    async def close(self) -> None:
        try:
            self._redis.close()
        except RedisError as e:
            logger.warning(f"Error closing Redis connection: {e}")
