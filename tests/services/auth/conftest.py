import pytest

from authsession.core.config import RotationPolicy
from authsession.services.auth import CsrfBinder, SessionTokenManager, TokenCodec
from authsession.services.clock import FrozenClock
from authsession.services.crypt import CryptBox
from authsession.services.key_value import MemoryKeyValueStore
from authsession.services.users import UserLookup

TOKEN_LIFETIME = 3600
GRACE_WINDOW = 60
APP_KEY = "unit-test-application-key"


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(CryptBox(APP_KEY))


@pytest.fixture
def csrf_binder() -> CsrfBinder:
    return CsrfBinder(APP_KEY)


def make_manager(
    store: MemoryKeyValueStore,
    codec: TokenCodec,
    users: UserLookup,
    clock: FrozenClock,
    rotation_policy: RotationPolicy,
) -> SessionTokenManager:
    return SessionTokenManager(
        store,
        codec,
        users,
        token_lifetime=TOKEN_LIFETIME,
        grace_window=GRACE_WINDOW,
        token_length=32,
        rotation_policy=rotation_policy,
        clock=clock,
    )


@pytest.fixture
def manager(store, codec, users, clock) -> SessionTokenManager:
    """Manager rotating once the grace epoch has passed."""
    return make_manager(store, codec, users, clock, RotationPolicy.GRACE_ELAPSED)


@pytest.fixture
def always_manager(store, codec, users, clock) -> SessionTokenManager:
    """Manager rotating on every validation."""
    return make_manager(store, codec, users, clock, RotationPolicy.ALWAYS)
