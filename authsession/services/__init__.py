from dataclasses import dataclass

from authsession.core.config import Settings
from authsession.services.auth import CsrfBinder, SessionTokenManager, TokenCodec
from authsession.services.clock import Clock, SystemClock
from authsession.services.crypt import CryptBox
from authsession.services.key_value import KeyValueStore, create_key_value_store
from authsession.services.random import RandomSource
from authsession.services.rate_limiter import RateLimiter
from authsession.services.users import UserLookup


@dataclass(frozen=True)
class Services:
    """Process-wide service handles, built once and passed explicitly."""

    settings: Settings
    store: KeyValueStore
    user_lookup: UserLookup
    codec: TokenCodec
    sessions: SessionTokenManager
    csrf: CsrfBinder
    rate_limiter: RateLimiter


def build_services(
    settings: Settings,
    user_lookup: UserLookup,
    store: KeyValueStore | None = None,
    clock: Clock | None = None,
    random_source: RandomSource | None = None,
) -> Services:
    """
    Wire the session services for one process

    Args:
        settings: Application settings
        user_lookup: User read access provided by the host application
        store: Key-value store, picked from the environment when omitted
        clock: Time source, wall clock when omitted
        random_source: Randomness, ``secrets``-backed when omitted

    Returns:
        Services: The wired handles
    """
    clock = clock or SystemClock()
    store = store or create_key_value_store(settings, clock)
    codec = TokenCodec(CryptBox(settings.app_key))

    return Services(
        settings=settings,
        store=store,
        user_lookup=user_lookup,
        codec=codec,
        sessions=SessionTokenManager.from_settings(
            settings, store, codec, user_lookup, random_source=random_source, clock=clock
        ),
        csrf=CsrfBinder(settings.app_key),
        rate_limiter=RateLimiter.from_settings(settings, store),
    )


__all__ = ["Services", "build_services"]
