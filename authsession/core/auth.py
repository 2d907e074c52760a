from pwdlib import PasswordHash

password_hash = PasswordHash.recommended()

# Pre-computed dummy hash so that unknown users cost as much as wrong passwords
# Reference: https://cheatsheetseries.owasp.org/cheatsheets/Authentication_Cheat_Sheet.html
_DUMMY_HASH = password_hash.hash("dummy_password_for_timing_attack_prevention")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """
    Verify password against hashed password
    Args:
        plain_password: Plain password
        hashed_password: Hashed password, None for users without a password

    Returns:
        Whether password matches hash
    """
    if hashed_password is None:
        password_hash.verify(plain_password, _DUMMY_HASH)
        return False

    return password_hash.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """
    Hash password
    Args:
        password: Plain password

    Returns:
        Hashed password
    """
    return password_hash.hash(password)
