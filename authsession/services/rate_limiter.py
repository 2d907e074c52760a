from typing import TypedDict

from loguru import logger

from authsession.core.config import Settings
from authsession.core.exceptions.rate_limiter import (
    RateLimitConfigurationError,
    RateLimitKeyGenerationError,
)
from authsession.services.key_value import KeyValueStore

KEY_PREFIX = "rate_limit:"


class RateLimitInfo(TypedDict):
    """Rate limit information used for response headers"""

    limit: int
    remaining: int
    retry_after: int
    window: int


class RateLimiter:
    """
    Fixed-window attempt counter built on key-value store primitives.

    One counter per ``(client fingerprint, action)``. The first attempt of a
    window creates the counter with the window as TTL; later attempts
    increment it atomically. The window only resets when the TTL runs out or
    the counter is cleared.

    Example:
        ```python
        key = rate_limiter.make_key(client_ip, RateLimitAction.LOGIN)

        if not await rate_limiter.attempt(key, max_attempts=5, window=600):
            seconds = await rate_limiter.ttl(key)
            # "retry in {seconds} seconds"

        # after the sensitive action succeeded
        await rate_limiter.clear(key)
        ```

    Note:
        Opening a window is a check (TTL) followed by a set: two requests
        racing at the window boundary may both open it, admitting at most one
        extra attempt. The limit is a soft bound.
    """

    def __init__(self, store: KeyValueStore, enabled: bool = True):
        self.store = store
        self.enabled = enabled

    @classmethod
    def from_settings(cls, settings: Settings, store: KeyValueStore) -> "RateLimiter":
        return cls(store, enabled=settings.rate_limit_enabled)

    @staticmethod
    def make_key(fingerprint: str, action: str) -> str:
        """
        Build the counter key for a client and an action

        Args:
            fingerprint: Client fingerprint (usually the IP address)
            action: Action key, see ``RateLimitAction``

        Returns:
            str: ``rate_limit:<fingerprint>.<action>``

        Raises:
            RateLimitKeyGenerationError: If either part is empty
        """
        if not fingerprint or not action:
            raise RateLimitKeyGenerationError(
                "Rate limit key needs a fingerprint and an action",
                context={"fingerprint": fingerprint, "action": action},
            )

        return f"{KEY_PREFIX}{fingerprint}.{action}"

    @staticmethod
    def _validate(max_attempts: int, window: int | None = None) -> None:
        if max_attempts <= 0:
            raise RateLimitConfigurationError(
                f"Rate limit must be positive, got {max_attempts}"
            )
        if window is not None and window <= 0:
            raise RateLimitConfigurationError(f"Rate limit window must be positive, got {window}")

    async def get(self, key: str) -> int:
        """Current attempt count, 0 when no window is open"""
        value = await self.store.get(key)
        if value is None:
            return 0

        try:
            return int(value)
        except ValueError:
            logger.warning(f"Non-integer rate limit counter for key {key}, treating as 0")
            return 0

    async def ttl(self, key: str) -> int:
        """Seconds left in the current window, 0 if none"""
        return await self.store.ttl(key)

    async def is_too_many_attempts(self, key: str, max_attempts: int) -> bool:
        self._validate(max_attempts)
        return await self.get(key) >= max_attempts

    async def remaining(self, key: str, max_attempts: int) -> int:
        """Attempts still admitted in the current window"""
        self._validate(max_attempts)
        return max(0, max_attempts - await self.get(key))

    async def attempt(self, key: str, max_attempts: int, window: int) -> bool:
        """
        Register one attempt

        Args:
            key: Counter key from ``make_key``
            max_attempts: Attempts admitted per window
            window: Window length in seconds

        Returns:
            bool: True if the attempt is admitted, False if the limit is reached

        Raises:
            RateLimitConfigurationError: If max_attempts or window is not positive
            StoreError: If the key-value store fails
        """
        self._validate(max_attempts, window)

        if not self.enabled:
            return True

        if await self.store.ttl(key) == 0:
            await self.store.set_ex(key, 1, window)
            return True

        # Rejected attempts neither grow the counter nor move the window
        if await self.get(key) >= max_attempts:
            logger.debug(f"Rate limit reached for key {key}")
            return False

        return await self.store.incr(key, 1) <= max_attempts

    async def clear(self, key: str) -> bool:
        """
        Drop the counter, restoring the full quota at once

        Returns:
            bool: True if a counter existed
        """
        deleted = await self.store.delete(key)
        if deleted:
            logger.info(f"Rate limit cleared for key {key}")
        return deleted

    async def get_limit_info(self, key: str, max_attempts: int, window: int) -> RateLimitInfo:
        """
        Current limit state without registering an attempt

        Returns:
            RateLimitInfo: limit, remaining attempts, seconds until the window
                resets (0 when no window is open) and the window length
        """
        self._validate(max_attempts, window)

        if not self.enabled:
            return RateLimitInfo(
                limit=max_attempts, remaining=max_attempts, retry_after=0, window=window
            )

        return RateLimitInfo(
            limit=max_attempts,
            remaining=await self.remaining(key, max_attempts),
            retry_after=await self.ttl(key),
            window=window,
        )
