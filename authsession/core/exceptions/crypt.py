from authsession.core.exceptions.base import CustomException


class CryptError(CustomException):
    """
    The cipher could not encrypt, or rejected a ciphertext (bad format, bad MAC)
    """

    def __init__(self, message, exception: Exception | None = None, context: dict | None = None):
        super().__init__(message, exception, context)
