from authsession.core.config import Settings
from authsession.services.clock import Clock

from .base import KeyValueStore
from .memory_store import MemoryKeyValueStore
from .redis_store import RedisKeyValueStore, create_redis_pool


def create_key_value_store(settings: Settings, clock: Clock | None = None) -> KeyValueStore:
    """
    Pick the store for the current environment: in-memory for local, Redis otherwise.
    """
    if settings.uses_redis:
        return RedisKeyValueStore.from_settings(settings)

    return MemoryKeyValueStore(clock)


__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "RedisKeyValueStore",
    "create_key_value_store",
    "create_redis_pool",
]
