from authsession.core.exceptions.base import CustomException


class RateLimiterException(CustomException):
    """
    Base exception for Rate Limiter
    """

    def __init__(self, message, exception: Exception | None = None, context: dict | None = None):
        super().__init__(message, exception, context)


class RateLimitConfigurationError(RateLimiterException):
    """
    Invalid attempt limit or window passed to the limiter
    """

    def __init__(self, message, exception: Exception | None = None, context: dict | None = None):
        super().__init__(message, exception, context)


class RateLimitKeyGenerationError(RateLimiterException):
    """
    Client fingerprint or action key unusable for building a counter key
    """

    def __init__(self, message, exception: Exception | None = None, context: dict | None = None):
        super().__init__(message, exception, context)
