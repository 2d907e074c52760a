from typing import Annotated

from fastapi import APIRouter, Depends, Form, Request, Response, status
from fastapi.responses import JSONResponse
from loguru import logger

from authsession.api.v1.deps.auth import CurrentUser, ServicesDep, SessionDep, require_csrf
from authsession.api.v1.deps.rate_limit import rate_limit_login
from authsession.core import responses
from authsession.core.auth import verify_password
from authsession.core.exceptions import http_exceptions
from authsession.core.exceptions.session import UserLookupError
from authsession.middleware.session import (
    COOKIE_HANDLED_FLAG,
    clear_session_cookie,
    set_session_cookie,
)
from authsession.schemas import RotationPair, SessionResponse, User, UserLogin

router = APIRouter()


@router.post(
    "/login",
    response_model=SessionResponse,
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": responses.UnauthorizedResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {"model": responses.TooManyRequestsResponse},
    },
    summary="Login",
    description="Check credentials, start a cookie session and return its CSRF value.",
)
async def login(
    request: Request,
    response: Response,
    user_in: Annotated[UserLogin, Form()],
    services: ServicesDep,
    session: SessionDep,
    rate_limit_key: Annotated[str, Depends(rate_limit_login)],
):
    """
    Form login. Failed attempts count against the client's login window;
    a successful login clears it.
    """
    try:
        user: User | None = await services.user_lookup.first_by_email(user_in.email)
    except Exception as e:
        raise UserLookupError(exception=e, context={"email": user_in.email})

    password_ok = verify_password(
        user_in.password.get_secret_value(),
        user.hashed_password if user else None,
    )

    if not user or not user.is_active or not password_ok:
        logger.info(f"Failed login attempt for {user_in.email}")

        if not (session.is_authenticated and session.pair is not None):
            raise http_exceptions.UnauthorizedException(detail="Incorrect email or password")

        # The session already held stays valid: hand back the token issued for this request
        setattr(request.state, COOKIE_HANDLED_FLAG, True)
        failed = JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"detail": "Incorrect email or password"},
        )
        set_session_cookie(failed, services.codec.encode(session.pair.issued), services.settings)
        return failed

    await services.rate_limiter.clear(rate_limit_key)

    # This endpoint owns the cookie of its response
    setattr(request.state, COOKIE_HANDLED_FLAG, True)

    # A session already held by this client is replaced
    if session.is_authenticated and session.pair is not None:
        await services.sessions.destroy(session.pair.issued)

    token = await services.sessions.login(user.id)
    set_session_cookie(response, services.codec.encode(token), services.settings)

    return SessionResponse(
        user_id=user.id,
        email=user.email,
        csrf_token=services.csrf.csrf(RotationPair(presented=token, issued=token)),
        expires=token.expires,
    )


@router.get(
    "/session",
    response_model=SessionResponse,
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": responses.UnauthorizedResponse},
    },
    summary="Current session",
    description="Return the session user and the CSRF value for pages rendered now.",
)
async def read_session(
    request: Request,
    current_user: CurrentUser,
    session: SessionDep,
):
    return SessionResponse(
        user_id=current_user.id,
        email=current_user.email,
        csrf_token=request.state.csrf_token,
        expires=session.pair.issued.expires,
    )


@router.post(
    "/logout",
    response_model=responses.MessageResponse,
    dependencies=[Depends(require_csrf)],
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": responses.UnauthorizedResponse},
        status.HTTP_403_FORBIDDEN: {"model": responses.ForbiddenResponse},
    },
    summary="Logout",
    description="End the cookie session. Requires the CSRF value.",
)
async def logout(
    request: Request,
    response: Response,
    session: SessionDep,
    services: ServicesDep,
):
    setattr(request.state, COOKIE_HANDLED_FLAG, True)

    pair = session.pair
    await services.sessions.destroy(pair.issued)
    if pair.rotated:
        await services.sessions.destroy(pair.presented)

    clear_session_cookie(response, services.settings)
    logger.info(f"User {pair.presented.user_id} logged out")

    return responses.MessageResponse(detail="Successfully logged out")
