from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStore(Protocol):
    """
    Network-backed key-value store used by the session and rate-limit services.

    Every operation is atomic at the store. Implementations raise
    ``StoreError`` on I/O failure and never retry.
    """

    async def get(self, key: str) -> str | None:
        """Value of ``key`` or None when absent."""
        ...

    async def set_ex(self, key: str, value: str | int, ttl: int) -> None:
        """Set ``key`` to ``value`` expiring after ``ttl`` seconds."""
        ...

    async def expire(self, key: str, ttl: int, lt: bool = False) -> bool:
        """
        Set a timeout on ``key``.

        With ``lt=True`` the timeout is only applied when it is shorter than
        the current one. Returns False when the key is absent or the timeout
        was left untouched.
        """
        ...

    async def incr(self, key: str, delta: int = 1) -> int:
        """Atomically add ``delta``; a missing key counts as 0. Returns the new value."""
        ...

    async def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if it existed."""
        ...

    async def ttl(self, key: str) -> int:
        """Seconds left before ``key`` expires, 0 if absent or persistent."""
        ...

    async def health_check(self) -> bool: ...

    async def close(self) -> None: ...
