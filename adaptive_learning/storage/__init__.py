"""
Storage Package

Key-value persistence for the personalization engine:
1. Backends - in-memory and Redis stores behind one async interface
2. Keys - namespaced key builder
3. Repositories - sessions, age detections, recommendation ledger, progress
"""

from adaptive_learning.common.logger import app_logger
from adaptive_learning.storage.base import KeyValueStore
from adaptive_learning.storage.memory import MemoryStore
from adaptive_learning.storage.keys import StorageKeys, DEFAULT_USER_ID

logger = app_logger.getChild("storage")


def create_store(storage_config) -> KeyValueStore:
    """
    Build the backend selected by a StorageConfig.

    Args:
        storage_config: Storage configuration section

    Returns:
        Configured key-value store
    """
    if storage_config.backend == "redis":
        from adaptive_learning.storage.redis import RedisStore

        logger.info(f"Using Redis storage at {storage_config.redis_host}:{storage_config.redis_port}")
        return RedisStore(
            host=storage_config.redis_host,
            port=storage_config.redis_port,
            db=storage_config.redis_db,
            password=storage_config.redis_password,
            key_prefix=storage_config.key_prefix,
        )

    logger.info("Using in-memory storage")
    return MemoryStore()


__all__ = [
    'KeyValueStore',
    'MemoryStore',
    'StorageKeys',
    'DEFAULT_USER_ID',
    'create_store',
]
