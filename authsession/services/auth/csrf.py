import hashlib
import hmac

from loguru import logger

from authsession.core.exceptions.session import CsrfMismatchError
from authsession.schemas.token import RotationPair


class CsrfBinder:
    """
    Derives CSRF values from session token values.

    Pages are rendered with the value of the token issued to the client.
    Verification uses the token the client presented, i.e. the token the
    page was rendered with, so a form rendered before a rotation still
    verifies on the request that triggers the rotation.
    """

    def __init__(self, app_key: str):
        if not app_key:
            raise ValueError("CSRF key must not be empty")

        self._key = app_key.encode()

    def _digest(self, token_value: str) -> str:
        return hmac.new(self._key, token_value.encode(), hashlib.sha256).hexdigest()

    def csrf(self, pair: RotationPair) -> str:
        """CSRF value to embed in pages rendered for this request."""
        return self._digest(pair.issued.token_value)

    def check(self, pair: RotationPair, presented: str | None) -> bool:
        if not presented:
            return False

        expected = self._digest(pair.presented.token_value)
        return hmac.compare_digest(expected.encode(), presented.encode())

    def verify(self, pair: RotationPair, presented: str | None) -> None:
        """
        Raises:
            CsrfMismatchError: If the value is missing or does not match
        """
        if self.check(pair, presented):
            return

        logger.warning(
            f"CSRF validation failed - {'mismatch' if presented else 'missing value'}. "
            f"User: {pair.presented.user_id}, Token: {pair.presented.token_id}"
        )
        raise CsrfMismatchError(
            context={"user_id": pair.presented.user_id, "token_id": pair.presented.token_id}
        )
