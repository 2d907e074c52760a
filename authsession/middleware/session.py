from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from starlette import status
from starlette.middleware.base import BaseHTTPMiddleware

from authsession.core.config import Settings
from authsession.core.exceptions.key_value import StoreError
from authsession.core.exceptions.session import TokenEncodeError, UserLookupError
from authsession.schemas.token import AuthToken, SessionContext, SessionState

# Endpoints that write or clear the session cookie themselves (login, logout)
# set this flag on request.state so the middleware leaves the response alone
COOKIE_HANDLED_FLAG = "session_cookie_handled"


def set_session_cookie(response: Response, value: str, settings: Settings) -> None:
    """Attach the encoded session token to a response."""
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=value,
        max_age=settings.auth_token_lifetime,
        path=settings.auth_cookie_path,
        domain=settings.auth_cookie_domain,
        secure=settings.auth_cookie_secure,
        httponly=settings.auth_cookie_http_only,
        samesite=settings.auth_cookie_samesite,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Tell the client to drop its session cookie."""
    response.delete_cookie(
        key=settings.auth_cookie_name,
        path=settings.auth_cookie_path,
        domain=settings.auth_cookie_domain,
        secure=settings.auth_cookie_secure,
        httponly=settings.auth_cookie_http_only,
        samesite=settings.auth_cookie_samesite,
    )


def _service_unavailable() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Session backend unavailable"},
    )


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Resolves the cookie session of every request.

    Before the endpoint runs:
        - Reads the session cookie and runs ``SessionTokenManager.authenticate``
        - Stores the ``SessionContext`` in ``request.state.session`` and the
          user (or None) in ``request.state.user``
        - Stores the CSRF value to render into pages in ``request.state.csrf_token``

    After the endpoint:
        - Authenticated request: writes the issued token back into the cookie,
          refreshing its max-age. If the endpoint answered 401 the issued token
          is revoked and the cookie cleared instead.
        - Invalid cookie: clears it.

    Key-value store and user lookup failures end the request with a 500
    before the endpoint runs.

    The wired services are read from ``request.app.state.services``.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        services = request.app.state.services
        settings: Settings = services.settings

        raw_token = request.cookies.get(settings.auth_cookie_name)

        try:
            session: SessionContext = await services.sessions.authenticate(raw_token)
        except (StoreError, UserLookupError) as e:
            logger.error(f"Session resolution failed. Path: {request.url.path} - {e}")
            return _service_unavailable()

        request.state.session = session
        request.state.user = session.user
        request.state.csrf_token = (
            services.csrf.csrf(session.pair) if session.pair is not None else None
        )

        response: Response = await call_next(request)

        if getattr(request.state, COOKIE_HANDLED_FLAG, False):
            return response

        if session.state == SessionState.TOKEN_INVALID:
            clear_session_cookie(response, settings)
            return response

        if not session.is_authenticated:
            return response

        issued: AuthToken = session.pair.issued

        if response.status_code == status.HTTP_401_UNAUTHORIZED:
            try:
                await services.sessions.revoke(issued)
            except StoreError as e:
                logger.error(f"Revoking session token after 401 failed: {e}")
            clear_session_cookie(response, settings)
            return response

        try:
            set_session_cookie(response, services.codec.encode(issued), settings)
        except TokenEncodeError as e:
            logger.error(f"Session cookie could not be written for user {issued.user_id}: {e}")
            return _service_unavailable()

        return response
