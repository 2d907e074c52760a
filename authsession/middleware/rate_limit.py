from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from authsession.services.rate_limiter import RateLimitInfo


def rate_limit_headers(info: RateLimitInfo) -> dict[str, str]:
    """Response headers describing a fixed-window counter."""
    return {
        "X-RateLimit-Limit": str(info["limit"]),
        "X-RateLimit-Remaining": str(info["remaining"]),
        "X-RateLimit-Reset": str(info["retry_after"]),
    }


class RateLimitHeaderMiddleware(BaseHTTPMiddleware):
    """
    Adds rate limit headers to responses of rate limited endpoints.

    Rate limit dependencies store the counter state in
    ``request.state.rate_limit_info``; requests without it are left untouched.
    ``X-RateLimit-Reset`` is the number of seconds until the window closes.

    Example:
        ```python
        from authsession.middleware.rate_limit import RateLimitHeaderMiddleware

        app.add_middleware(RateLimitHeaderMiddleware)
        ```
    """

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)

        info: RateLimitInfo | None = getattr(request.state, "rate_limit_info", None)
        if info is not None:
            response.headers.update(rate_limit_headers(info))

        return response
