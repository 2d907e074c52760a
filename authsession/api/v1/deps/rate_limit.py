from fastapi import Request
from loguru import logger

from authsession.core.constants import RateLimitAction
from authsession.core.exceptions.http_exceptions import TooManyRequestsException
from authsession.core.utils import get_client_ip
from authsession.middleware.rate_limit import rate_limit_headers
from authsession.services import Services


async def _enforce(request: Request, action: str, max_attempts: int, window: int) -> str:
    """
    Register one attempt of ``action`` for the client and refuse it when the
    window is exhausted

    Returns:
        str: The counter key, so the endpoint can clear it after success

    Raises:
        TooManyRequestsException: When the limit is reached (HTTP 429)
    """
    services: Services = request.app.state.services
    limiter = services.rate_limiter

    ip = get_client_ip(request, services.settings)
    key = limiter.make_key(ip, action)

    is_allowed = await limiter.attempt(key, max_attempts, window)
    info = await limiter.get_limit_info(key, max_attempts, window)

    # Picked up by RateLimitHeaderMiddleware
    request.state.rate_limit_info = info
    request.state.rate_limit_key = key

    if not is_allowed:
        logger.warning(f"Rate limit exceeded. Action: {action}, IP: {ip}, Key: {key}")
        raise TooManyRequestsException(
            detail=f"Too many attempts. Please try again in {info['retry_after']} seconds.",
            headers={"Retry-After": str(info["retry_after"]), **rate_limit_headers(info)},
        )

    return key


async def rate_limit_login(request: Request) -> str:
    """
    Rate limiting for credential checks (IP-based).

    Limit: settings.rate_limit_login_max attempts per settings.rate_limit_login_window
    Key strategy: IP address
    Use case: Login form. The endpoint clears the counter after a successful login.

    Args:
        request: FastAPI request object

    Returns:
        str: The counter key

    Raises:
        TooManyRequestsException: When rate limit is exceeded (HTTP 429)
    """
    settings = request.app.state.services.settings
    return await _enforce(
        request,
        RateLimitAction.LOGIN,
        settings.rate_limit_login_max,
        settings.rate_limit_login_window,
    )


async def rate_limit_sensitive(request: Request) -> str:
    """
    Rate limiting for sensitive mutations behind a session (IP-based).

    Limit: settings.rate_limit_sensitive_max attempts per settings.rate_limit_sensitive_window

    Example:
        ```python
        @router.post("/logout", dependencies=[Depends(rate_limit_sensitive)])
        async def logout(...):
            pass
        ```
    """
    settings = request.app.state.services.settings
    return await _enforce(
        request,
        RateLimitAction.SENSITIVE,
        settings.rate_limit_sensitive_max,
        settings.rate_limit_sensitive_window,
    )


def create_rate_limit(action: str, max_attempts: int, window: int = 60):
    """
    Factory function to create rate limiters for custom actions.

    Args:
        action: Action key, must not collide with a ``RateLimitAction`` key
        max_attempts: Attempts admitted per window
        window: Window length in seconds (default: 60)

    Returns:
        Async dependency function that can be used with Depends()

    Raises:
        ValueError: If the action collides with a registered one

    Example:
        ```python
        export_limit = create_rate_limit("export", max_attempts=5, window=300)

        @router.post("/export", dependencies=[Depends(export_limit)])
        async def export_data(...):
            pass
        ```
    """
    RateLimitAction.validate_action(action)

    async def custom_limiter(request: Request) -> str:
        return await _enforce(request, action, max_attempts, window)

    return custom_limiter
