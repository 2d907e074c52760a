from loguru import logger

from authsession.core.exceptions.crypt import CryptError
from authsession.core.exceptions.session import TokenDecodeError, TokenEncodeError
from authsession.schemas.token import AuthToken
from authsession.services.crypt import CryptBox

DELIMITER = "-"
FIELD_COUNT = 4


class TokenCodec:
    """
    Turns an ``AuthToken`` into the opaque cookie value and back.

    Plaintext layout: ``<user_id>-<token_id>-<token_value>-<expires>``,
    then encrypted by the ``CryptBox``.
    """

    def __init__(self, crypt_box: CryptBox):
        self.crypt_box = crypt_box

    def encode(self, token: AuthToken) -> str:
        """
        Serialize and encrypt a token

        Raises:
            TokenEncodeError: If the cipher fails
        """
        plaintext = DELIMITER.join(
            (str(token.user_id), str(token.token_id), token.token_value, str(token.expires))
        )

        try:
            return self.crypt_box.encrypt(plaintext)
        except CryptError as e:
            logger.error(f"TokenCodec.encode failed for {token}: {e}")
            raise TokenEncodeError(
                exception=e, context={"user_id": token.user_id, "token_id": token.token_id}
            )

    def decode(self, raw: str) -> AuthToken:
        """
        Decrypt and parse a cookie value

        Raises:
            TokenDecodeError: On decryption failure, wrong field count or
                non-numeric integer fields
        """
        try:
            plaintext = self.crypt_box.decrypt(raw)
        except CryptError as e:
            logger.debug(f"TokenCodec.decode rejected ciphertext: {e.message}")
            raise TokenDecodeError("Token is not decryptable", e)

        fields = plaintext.split(DELIMITER)
        if len(fields) != FIELD_COUNT:
            raise TokenDecodeError(f"Expected {FIELD_COUNT} token fields, got {len(fields)}")

        user_id, token_id, token_value, expires = fields

        # str.isdigit also accepts non-ASCII digits, int() must not see signs or spaces
        if not all(field.isascii() and field.isdigit() for field in (user_id, token_id, expires)):
            raise TokenDecodeError("Token integer fields are not numeric")

        try:
            return AuthToken(
                user_id=int(user_id),
                token_id=int(token_id),
                token_value=token_value,
                expires=int(expires),
            )
        except ValueError as e:
            # pydantic ValidationError: out of u64 range or empty token value
            raise TokenDecodeError("Token fields are out of range", e)
