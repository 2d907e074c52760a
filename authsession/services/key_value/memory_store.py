from dataclasses import dataclass

from authsession.core.exceptions.key_value import StoreError
from authsession.services.clock import Clock, SystemClock


@dataclass
class _Entry:
    value: str
    expires_at: int | None = None


class MemoryKeyValueStore:
    """
    Process-local ``KeyValueStore`` with Redis-compatible TTL semantics.

    Used in the local environment and in tests. Expiry is evaluated lazily
    against the injected clock, so a ``FrozenClock`` makes lifetimes and
    grace windows deterministic. Not shared between worker processes.
    """

    def __init__(self, clock: Clock | None = None):
        self.clock = clock or SystemClock()
        self._data: dict[str, _Entry] = {}

    def _live(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is None:
            return None

        if entry.expires_at is not None and entry.expires_at <= self.clock.now():
            del self._data[key]
            return None

        return entry

    async def get(self, key: str) -> str | None:
        entry = self._live(key)
        return entry.value if entry else None

    async def set_ex(self, key: str, value: str | int, ttl: int) -> None:
        if ttl <= 0:
            raise StoreError("Invalid expire time in 'set' command", context={"key": key})

        self._data[key] = _Entry(value=str(value), expires_at=self.clock.now() + ttl)

    async def expire(self, key: str, ttl: int, lt: bool = False) -> bool:
        entry = self._live(key)
        if entry is None:
            return False

        expires_at = self.clock.now() + ttl

        # A key without expiry has an infinite TTL for the LT comparison
        if lt and entry.expires_at is not None and expires_at >= entry.expires_at:
            return False

        if ttl <= 0:
            del self._data[key]
            return True

        entry.expires_at = expires_at
        return True

    async def incr(self, key: str, delta: int = 1) -> int:
        entry = self._live(key)
        if entry is None:
            entry = self._data[key] = _Entry(value="0")

        try:
            current = int(entry.value)
        except ValueError as e:
            raise StoreError("Value is not an integer or out of range", e, {"key": key})

        entry.value = str(current + delta)
        return current + delta

    async def delete(self, key: str) -> bool:
        return self._live(key) is not None and self._data.pop(key, None) is not None

    async def ttl(self, key: str) -> int:
        entry = self._live(key)
        if entry is None or entry.expires_at is None:
            return 0

        return entry.expires_at - self.clock.now()

    async def health_check(self) -> bool:
        return True

    async def close(self) -> None:
        self._data.clear()
