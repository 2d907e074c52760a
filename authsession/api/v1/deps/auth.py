from typing import Annotated

from fastapi import Depends, Request
from loguru import logger

from authsession.core.exceptions import http_exceptions
from authsession.core.exceptions.session import CsrfMismatchError
from authsession.core.utils import get_csrf_value
from authsession.schemas import SessionContext, User
from authsession.services import Services


def get_services(request: Request) -> Services:
    """Service handles wired by the application factory"""
    return request.app.state.services


def get_session_context(request: Request) -> SessionContext:
    """
    Session resolved by ``SessionMiddleware`` for the current request

    Raises:
        RuntimeError: If the middleware is not installed
    """
    session = getattr(request.state, "session", None)
    if session is None:
        raise RuntimeError("SessionMiddleware is not installed")

    return session


async def get_current_user(
    session: Annotated[SessionContext, Depends(get_session_context)],
) -> User:
    """
    Get the user of the current cookie session

    Args:
        session: Session resolved by the middleware

    Returns:
        Current authenticated user

    Raises:
        UnauthorizedException: If no valid session accompanies the request
    """
    if not session.is_authenticated or session.user is None:
        raise http_exceptions.UnauthorizedException(detail="Not authenticated")

    return session.user


async def require_csrf(
    request: Request,
    session: Annotated[SessionContext, Depends(get_session_context)],
    services: Annotated[Services, Depends(get_services)],
) -> None:
    """
    Verify the CSRF value of a mutating request against the presented token

    The value is read from the configured header, then from the configured
    form field.

    Raises:
        UnauthorizedException: If no valid session accompanies the request
        ForbiddenException: If the CSRF value is missing or does not match
    """
    if not session.is_authenticated or session.pair is None:
        raise http_exceptions.UnauthorizedException(detail="Not authenticated")

    form = None
    if request.headers.get(services.settings.csrf_header_name) is None:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(
            ("application/x-www-form-urlencoded", "multipart/form-data")
        ):
            form = dict(await request.form())

    try:
        services.csrf.verify(session.pair, get_csrf_value(request, services.settings, form))
    except CsrfMismatchError as e:
        logger.warning(f"Request refused. Path: {request.url.path} - {e.message}")
        raise http_exceptions.ForbiddenException(detail="CSRF token validation failed.")


CurrentUser = Annotated[User, Depends(get_current_user)]
ServicesDep = Annotated[Services, Depends(get_services)]
SessionDep = Annotated[SessionContext, Depends(get_session_context)]
