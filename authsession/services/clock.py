import time
from typing import Protocol


class Clock(Protocol):
    """Source of the current unix time in whole seconds."""

    def now(self) -> int: ...


class SystemClock:
    """Wall clock backed by ``time.time``."""

    def now(self) -> int:
        return int(time.time())


class FrozenClock:
    """
    Manually driven clock.

    Used by the in-memory key-value store and by tests that need to step
    over token lifetimes and grace windows without sleeping.
    """

    def __init__(self, start: int = 1_700_000_000):
        self._now = start

    def now(self) -> int:
        return self._now

    def advance(self, seconds: int) -> int:
        self._now += seconds
        return self._now

    def set(self, timestamp: int) -> None:
        self._now = timestamp
