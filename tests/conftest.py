import os

# Default settings come from the environment
os.environ.setdefault("APP_KEY", "test-application-key-0123456789")
os.environ.setdefault("CURRENT_ENVIRONMENT", "local")

from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock  # noqa: E402

import pytest  # noqa: E402
from faker import Faker  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from redis.asyncio import Redis  # noqa: E402

from authsession.core.auth import get_password_hash  # noqa: E402
from authsession.core.config import RotationPolicy, Settings  # noqa: E402
from authsession.main import create_app  # noqa: E402
from authsession.schemas import User  # noqa: E402
from authsession.services import Services, build_services  # noqa: E402
from authsession.services.clock import FrozenClock  # noqa: E402
from authsession.services.key_value import MemoryKeyValueStore  # noqa: E402

DEFAULT_PASSWORD = "P@ssword123"


class InMemoryUsers:
    """``UserLookup`` over a dict, standing in for the host application's user table."""

    def __init__(self, users: list[User] | None = None):
        self.users: dict[int, User] = {user.id: user for user in users or []}

    def add(self, user: User) -> User:
        self.users[user.id] = user
        return user

    def remove(self, user_id: int) -> None:
        self.users.pop(user_id, None)

    async def first_by_id(self, user_id: int) -> User | None:
        return self.users.get(user_id)

    async def first_by_email(self, email: str) -> User | None:
        return next((user for user in self.users.values() if user.email == email), None)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def faker() -> Faker:
    """Create a Faker instance for generating test data."""
    return Faker()


@pytest.fixture(scope="session")
def pre_hashed_password() -> str:
    """Hash the default password once for all tests."""
    return get_password_hash(DEFAULT_PASSWORD)


@pytest.fixture
def default_password() -> str:
    return DEFAULT_PASSWORD


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        app_key="test-application-key-0123456789",
        auth_token_lifetime=3600,
        auth_grace_window=60,
        auth_token_length=32,
        auth_rotation_policy=RotationPolicy.GRACE_ELAPSED,
        rate_limit_login_max=3,
        rate_limit_login_window=60,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def store(clock: FrozenClock) -> MemoryKeyValueStore:
    return MemoryKeyValueStore(clock)


@pytest.fixture
def user(faker: Faker, pre_hashed_password: str) -> User:
    """Create a test user."""
    return User(
        id=faker.random_int(min=1, max=10_000),
        email=faker.safe_email(),
        hashed_password=pre_hashed_password,
    )


@pytest.fixture
def users(user: User) -> InMemoryUsers:
    return InMemoryUsers([user])


@pytest.fixture
def services(
    test_settings: Settings,
    users: InMemoryUsers,
    store: MemoryKeyValueStore,
    clock: FrozenClock,
) -> Services:
    return build_services(test_settings, users, store=store, clock=clock)


@pytest.fixture
def test_app(
    test_settings: Settings,
    users: InMemoryUsers,
    store: MemoryKeyValueStore,
    clock: FrozenClock,
) -> FastAPI:
    """Create the application over the in-memory store and a frozen clock."""
    return create_app(users, settings=test_settings, store=store, clock=clock)


@pytest.fixture
async def client(anyio_backend, test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def mock_redis_client() -> AsyncMock:
    """Create a mock Redis client."""
    mock_redis = AsyncMock(spec=Redis)
    mock_redis.ping = AsyncMock(return_value=True)
    mock_redis.get = AsyncMock(return_value=None)
    mock_redis.set = AsyncMock(return_value=True)
    mock_redis.expire = AsyncMock(return_value=True)
    mock_redis.incrby = AsyncMock(return_value=1)
    mock_redis.delete = AsyncMock(return_value=1)
    mock_redis.ttl = AsyncMock(return_value=-2)
    mock_redis.aclose = AsyncMock()

    return mock_redis
