from authsession.core.exceptions.base import CustomException

# =============================================================================
# Session token exceptions (raised by services/auth, caught by the middleware)
# =============================================================================


class SessionException(CustomException):
    """Base exception for the session token lifecycle."""

    def __init__(self, message, exception: Exception | None = None, context: dict | None = None):
        super().__init__(message, exception, context)


class TokenEncodeError(SessionException):
    """The token could not be serialized into a cookie value."""

    def __init__(
        self,
        message: str = "Token encoding failed",
        exception: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, exception, context)


class TokenDecodeError(SessionException):
    """
    The cookie value is not a token produced by this application.

    Never fatal: callers treat it as an anonymous request.
    """

    def __init__(
        self,
        message: str = "Token decoding failed",
        exception: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, exception, context)


class InvalidSessionError(SessionException):
    """The token is unknown to the store, malformed there, or its value does not match."""

    def __init__(
        self,
        message: str = "Invalid session token",
        exception: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, exception, context)


class UserNotFoundError(SessionException):
    """The token references a user that no longer exists."""

    def __init__(
        self,
        message: str = "Session user not found",
        exception: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, exception, context)


class UserLookupError(SessionException):
    """The user lookup collaborator failed."""

    def __init__(
        self,
        message: str = "User lookup failed",
        exception: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, exception, context)


class CsrfMismatchError(SessionException):
    """The CSRF value is missing or was not derived from the presented token."""

    def __init__(
        self,
        message: str = "CSRF token mismatch.",
        exception: Exception | None = None,
        context: dict | None = None,
    ):
        super().__init__(message, exception, context)
