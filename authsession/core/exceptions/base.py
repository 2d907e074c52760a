from typing import Any


class CustomException(Exception):
    """
    Base for all custom exceptions.

    ``context`` carries identifiers that are safe to log (user id, token id,
    store key), never secrets such as token values.
    """

    def __init__(
        self,
        message,
        exception: Exception | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.exception = exception
        self.context = context or {}

    def __str__(self):
        text = self.message

        if self.context:
            details = ", ".join(f"{key}={value}" for key, value in self.context.items())
            text = f"{text} ({details})"

        if self.exception:
            return f"{text}\nException: {self.exception}"

        return text
