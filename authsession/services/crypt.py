import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from loguru import logger

from authsession.core.exceptions.crypt import CryptError


class CryptBox:
    """
    Symmetric encryption of opaque strings.

    Ciphertexts are Fernet tokens (AES-128-CBC with an HMAC-SHA256 tag and a
    random IV), so they are URL-safe and can be put into cookies as is.
    The Fernet key is derived from the application key.
    """

    def __init__(self, key_material: str):
        if not key_material:
            raise CryptError("Application key is missing")

        try:
            self._fernet = Fernet(self._derive_cipher_key(key_material))
        except Exception as e:
            raise CryptError("Unable to initialize cipher", e)

    @staticmethod
    def _derive_cipher_key(key_material: str) -> bytes:
        return base64.urlsafe_b64encode(hashlib.sha256(key_material.encode()).digest())

    @staticmethod
    def random_key() -> str:
        """Generate fresh key material suitable for the ``APP_KEY`` setting."""
        return Fernet.generate_key().decode()

    def encrypt(self, plaintext: str) -> str:
        """
        Encrypt a string

        Args:
            plaintext: Value to encrypt

        Returns:
            URL-safe ciphertext

        Raises:
            CryptError: If the cipher fails
        """
        try:
            return self._fernet.encrypt(plaintext.encode()).decode()
        except Exception as e:
            logger.error(f"CryptBox.encrypt failed: {e}")
            raise CryptError("Encryption failed", e)

    def decrypt(self, ciphertext: str) -> str:
        """
        Decrypt a string produced by ``encrypt``

        Args:
            ciphertext: Value from ``encrypt``

        Returns:
            Original plaintext

        Raises:
            CryptError: If the ciphertext is malformed, tampered with or not UTF-8
        """
        try:
            return self._fernet.decrypt(ciphertext.encode()).decode()
        except InvalidToken as e:
            raise CryptError("Ciphertext rejected", e)
        except (UnicodeError, ValueError, TypeError) as e:
            raise CryptError("Ciphertext is not decodable", e)
