import secrets
import string

# No dash: token values are dash-joined with other fields in cookies and store records
TOKEN_ALPHABET = string.ascii_letters + string.digits

U64_MAX = 2**64 - 1


class RandomSource:
    """
    Cryptographically strong random values, backed by ``secrets``.
    """

    def __init__(self, alphabet: str = TOKEN_ALPHABET):
        if not alphabet:
            raise ValueError("Alphabet must not be empty")
        if "-" in alphabet:
            raise ValueError("Alphabet must not contain the '-' delimiter")

        self.alphabet = alphabet

    def random_string(self, length: int) -> str:
        """
        Generate a random string of the given length from the alphabet

        Args:
            length: Number of characters

        Returns:
            Random string
        """
        if length < 1:
            raise ValueError("Random string length must be positive")

        return "".join(secrets.choice(self.alphabet) for _ in range(length))

    def random_int(self, low: int, high: int) -> int:
        """
        Random integer in the inclusive range [low, high]
        """
        if high < low:
            raise ValueError(f"Empty range [{low}, {high}]")

        return low + secrets.randbelow(high - low + 1)

    def random_u64(self) -> int:
        return self.random_int(0, U64_MAX)
