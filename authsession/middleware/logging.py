import time
import uuid
from typing import Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from authsession.core.logger import request_id_var


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with a short id, binds it to the log records emitted
    while the request is served and echoes it in ``X-Request-ID``.

    Cookies and request bodies are never logged: they carry session tokens
    and passwords.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        reset_token = request_id_var.set(request_id)

        start_time = time.perf_counter()

        try:
            logger.trace(
                f"{request.method} {request.url.path} - "
                f"User-Agent: {request.headers.get('user-agent', 'unknown')}"
            )

            try:
                response: Response = await call_next(request)
            except Exception as e:
                logger.error(
                    f"{request.method} {request.url.path} - "
                    f"Error: {e} - Time: {time.perf_counter() - start_time:.3f}s"
                )
                raise

            logger.trace(
                f"{request.method} {request.url.path} - "
                f"Status: {response.status_code} - "
                f"Time: {time.perf_counter() - start_time:.3f}s"
            )
            response.headers["X-Request-ID"] = request_id

            return response
        finally:
            request_id_var.reset(reset_token)
