from fastapi import Request

from authsession.core.config import Environment, Settings


def get_client_ip(request: Request, settings: Settings) -> str:
    """
    Get client IP address from request headers or remote address

    Args:
        request: FastAPI request object
        settings: Application settings

    Returns:
        Client IP address as a string
    """
    if settings.current_environment == Environment.LOCAL:
        return "localhost"

    if "X-Forwarded-For" in request.headers:
        return request.headers["X-Forwarded-For"].split(",")[0].strip()

    if "X-Real-IP" in request.headers:
        return request.headers["X-Real-IP"].strip()

    if "X-Client-IP" in request.headers:
        return request.headers["X-Client-IP"].strip()

    return request.client.host if request.client else "unknown"


def get_csrf_value(request: Request, settings: Settings, form: dict | None = None) -> str | None:
    """
    CSRF value sent with a mutating request: header first, then the form field

    Args:
        request: FastAPI request object
        settings: Application settings naming the header and the form field
        form: Parsed form data, if the body was already read

    Returns:
        The presented CSRF value or None
    """
    value = request.headers.get(settings.csrf_header_name)
    if value:
        return value

    if form is not None:
        field = form.get(settings.csrf_field_name)
        if isinstance(field, str) and field:
            return field

    return None
