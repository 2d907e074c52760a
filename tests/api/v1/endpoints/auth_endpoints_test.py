"""Tests for the cookie session endpoints."""

import pytest
from httpx import AsyncClient

from authsession.core.config import Settings
from authsession.schemas import User
from authsession.services.clock import FrozenClock
from authsession.services.key_value import MemoryKeyValueStore
from authsession.services.rate_limiter import RateLimiter

LOGIN_URL = "/api/v1/auth/login"
SESSION_URL = "/api/v1/auth/session"
LOGOUT_URL = "/api/v1/auth/logout"


async def login(client: AsyncClient, user: User, password: str):
    return await client.post(LOGIN_URL, data={"email": user.email, "password": password})


def use_cookie(client: AsyncClient, value: str) -> None:
    """Replace the client's session cookie, as a browser replaying an older one would."""
    client.cookies.clear()
    client.cookies.set("session", value, domain="test.local")


class TestLoginEndpoint:
    """Test suite for POST /api/v1/auth/login endpoint."""

    @pytest.mark.anyio
    async def test_login_success(
        self,
        client: AsyncClient,
        user: User,
        default_password: str,
        test_settings: Settings,
        clock: FrozenClock,
    ):
        response = await login(client, user, default_password)

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == user.id
        assert data["email"] == user.email
        assert len(data["csrf_token"]) == 64
        assert data["expires"] == clock.now() + test_settings.auth_token_lifetime

        assert client.cookies.get("session")
        set_cookie = response.headers["set-cookie"].lower()
        assert "httponly" in set_cookie
        assert "path=/" in set_cookie
        assert f"max-age={test_settings.auth_token_lifetime}" in set_cookie

    @pytest.mark.anyio
    async def test_login_wrong_password(self, client: AsyncClient, user: User):
        response = await login(client, user, "wrong-password")

        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect email or password"
        assert "session" not in client.cookies

    @pytest.mark.anyio
    async def test_login_unknown_email(self, client: AsyncClient, default_password: str):
        response = await client.post(
            LOGIN_URL, data={"email": "nobody@example.com", "password": default_password}
        )

        assert response.status_code == 401

    @pytest.mark.anyio
    async def test_login_inactive_user(
        self, client: AsyncClient, user: User, users, default_password: str
    ):
        users.add(user.model_copy(update={"is_active": False}))

        response = await login(client, user, default_password)

        assert response.status_code == 401

    @pytest.mark.anyio
    async def test_login_missing_fields(self, client: AsyncClient):
        response = await client.post(LOGIN_URL, data={"email": "someone@example.com"})

        assert response.status_code == 422

    @pytest.mark.anyio
    async def test_login_rate_limited(self, client: AsyncClient, user: User, default_password):
        for _ in range(3):
            response = await login(client, user, "wrong-password")
            assert response.status_code == 401

        response = await login(client, user, default_password)

        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) > 0
        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "0"
        assert "Please try again in" in response.json()["detail"]
        assert "session" not in client.cookies

    @pytest.mark.anyio
    async def test_login_rate_limit_headers(self, client: AsyncClient, user: User):
        response = await login(client, user, "wrong-password")

        assert response.headers["X-RateLimit-Limit"] == "3"
        assert response.headers["X-RateLimit-Remaining"] == "2"
        assert response.headers["X-RateLimit-Reset"] == "60"

    @pytest.mark.anyio
    async def test_login_success_clears_counter(
        self,
        client: AsyncClient,
        user: User,
        default_password: str,
        store: MemoryKeyValueStore,
    ):
        key = RateLimiter.make_key("localhost", "login")
        for _ in range(2):
            await login(client, user, "wrong-password")
        assert await store.get(key) == "2"

        response = await login(client, user, default_password)

        assert response.status_code == 200
        assert await store.get(key) is None

    @pytest.mark.anyio
    async def test_login_window_reopens(
        self, client: AsyncClient, user: User, default_password: str, clock: FrozenClock
    ):
        for _ in range(3):
            await login(client, user, "wrong-password")
        assert (await login(client, user, default_password)).status_code == 429

        clock.advance(60)

        assert (await login(client, user, default_password)).status_code == 200

    @pytest.mark.anyio
    async def test_login_replaces_existing_session(
        self, client: AsyncClient, user: User, default_password: str
    ):
        await login(client, user, default_password)
        first_cookie = client.cookies["session"]

        await login(client, user, default_password)

        assert client.cookies["session"] != first_cookie

        use_cookie(client, first_cookie)
        response = await client.get(SESSION_URL)
        assert response.status_code == 401

    @pytest.mark.anyio
    async def test_failed_login_keeps_existing_session(
        self,
        client: AsyncClient,
        user: User,
        default_password: str,
        clock: FrozenClock,
        test_settings: Settings,
    ):
        await login(client, user, default_password)
        first_cookie = client.cookies["session"]
        clock.advance(test_settings.auth_grace_window)

        response = await login(client, user, "wrong-password")

        assert response.status_code == 401
        assert response.json()["detail"] == "Incorrect email or password"
        assert "session=" in response.headers["set-cookie"]
        assert client.cookies["session"] != first_cookie

        clock.advance(test_settings.auth_grace_window)
        response = await client.get(SESSION_URL)

        assert response.status_code == 200
        assert response.json()["user_id"] == user.id

    @pytest.mark.anyio
    async def test_failed_login_before_rotation_keeps_token(
        self, client: AsyncClient, test_app, user: User, default_password: str
    ):
        codec = test_app.state.services.codec
        await login(client, user, default_password)
        first_token = codec.decode(client.cookies["session"])

        response = await login(client, user, "wrong-password")

        assert response.status_code == 401
        assert codec.decode(client.cookies["session"]) == first_token
        assert (await client.get(SESSION_URL)).status_code == 200


class TestSessionEndpoint:
    """Test suite for GET /api/v1/auth/session endpoint."""

    @pytest.mark.anyio
    async def test_session_without_cookie(self, client: AsyncClient):
        response = await client.get(SESSION_URL)

        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    @pytest.mark.anyio
    async def test_session_with_cookie(
        self, client: AsyncClient, user: User, default_password: str
    ):
        login_data = (await login(client, user, default_password)).json()

        response = await client.get(SESSION_URL)

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == user.id
        assert data["csrf_token"] == login_data["csrf_token"]
        assert data["expires"] == login_data["expires"]

    @pytest.mark.anyio
    async def test_session_rotates_after_grace(
        self,
        client: AsyncClient,
        user: User,
        default_password: str,
        clock: FrozenClock,
        test_settings: Settings,
    ):
        login_data = (await login(client, user, default_password)).json()
        first_cookie = client.cookies["session"]

        clock.advance(test_settings.auth_grace_window)
        response = await client.get(SESSION_URL)

        assert response.status_code == 200
        assert client.cookies["session"] != first_cookie
        assert response.json()["csrf_token"] != login_data["csrf_token"]

    @pytest.mark.anyio
    async def test_superseded_cookie_works_during_grace(
        self,
        client: AsyncClient,
        user: User,
        default_password: str,
        clock: FrozenClock,
        test_settings: Settings,
    ):
        await login(client, user, default_password)
        first_cookie = client.cookies["session"]
        clock.advance(test_settings.auth_grace_window)
        await client.get(SESSION_URL)

        use_cookie(client, first_cookie)
        clock.advance(test_settings.auth_grace_window - 1)
        assert (await client.get(SESSION_URL)).status_code == 200

        use_cookie(client, first_cookie)
        clock.advance(1)
        assert (await client.get(SESSION_URL)).status_code == 401

    @pytest.mark.anyio
    async def test_garbage_cookie_is_cleared(self, client: AsyncClient):
        use_cookie(client, "garbage")

        response = await client.get(SESSION_URL)

        assert response.status_code == 401
        assert "session=" in response.headers["set-cookie"]
        assert "session" not in client.cookies

    @pytest.mark.anyio
    async def test_deleted_user_session_is_cleared(
        self, client: AsyncClient, user: User, users, default_password: str
    ):
        await login(client, user, default_password)
        users.remove(user.id)

        response = await client.get(SESSION_URL)

        assert response.status_code == 401
        assert "session" not in client.cookies


class TestLogoutEndpoint:
    """Test suite for POST /api/v1/auth/logout endpoint."""

    @pytest.mark.anyio
    async def test_logout_success(self, client: AsyncClient, user: User, default_password: str):
        csrf_token = (await login(client, user, default_password)).json()["csrf_token"]
        cookie = client.cookies["session"]

        response = await client.post(LOGOUT_URL, headers={"X-CSRF-Token": csrf_token})

        assert response.status_code == 200
        assert response.json()["detail"] == "Successfully logged out"
        assert "session" not in client.cookies

        use_cookie(client, cookie)
        assert (await client.get(SESSION_URL)).status_code == 401

    @pytest.mark.anyio
    async def test_logout_with_form_field(
        self, client: AsyncClient, user: User, default_password: str
    ):
        csrf_token = (await login(client, user, default_password)).json()["csrf_token"]

        response = await client.post(LOGOUT_URL, data={"_token": csrf_token})

        assert response.status_code == 200

    @pytest.mark.anyio
    async def test_logout_with_page_rendered_before_rotation(
        self,
        client: AsyncClient,
        user: User,
        default_password: str,
        clock: FrozenClock,
        test_settings: Settings,
    ):
        csrf_token = (await login(client, user, default_password)).json()["csrf_token"]
        clock.advance(test_settings.auth_grace_window)

        response = await client.post(LOGOUT_URL, headers={"X-CSRF-Token": csrf_token})

        assert response.status_code == 200

    @pytest.mark.anyio
    async def test_logout_without_csrf(self, client: AsyncClient, user: User, default_password):
        await login(client, user, default_password)

        response = await client.post(LOGOUT_URL)

        assert response.status_code == 403
        assert response.json()["detail"] == "CSRF token validation failed."
        assert client.cookies.get("session")

    @pytest.mark.anyio
    async def test_logout_with_wrong_csrf(self, client: AsyncClient, user: User, default_password):
        await login(client, user, default_password)

        response = await client.post(LOGOUT_URL, headers={"X-CSRF-Token": "0" * 64})

        assert response.status_code == 403

    @pytest.mark.anyio
    async def test_logout_without_session(self, client: AsyncClient):
        response = await client.post(LOGOUT_URL, headers={"X-CSRF-Token": "anything"})

        assert response.status_code == 401


class TestHealthCheck:
    @pytest.mark.anyio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "key_value_store": True}
        assert "X-Request-ID" in response.headers
