from authsession.core.exceptions.base import CustomException


class StoreError(CustomException):
    """
    Key-value store I/O failure (connection, timeout, protocol error).

    Surfaced as an internal failure; never retried by the core.
    """

    def __init__(self, message, exception: Exception | None = None, context: dict | None = None):
        super().__init__(message, exception, context)
