class RateLimitAction:
    """
    Centralized registry of the action keys rate limit counters are bound to.

    Counter keys follow the pattern ``rate_limit:{fingerprint}.{action}``
    where fingerprint is the client IP address.

    Example:
        ```python
        from authsession.core.constants import RateLimitAction

        key = rate_limiter.make_key(client_ip, RateLimitAction.LOGIN)
        # Result: "rate_limit:192.168.1.1.login"
        ```
    """

    # Credential checks (login form)
    LOGIN = "login"

    # Sensitive mutations behind a valid session (password change, mass actions)
    SENSITIVE = "sensitive"

    @classmethod
    def all_actions(cls) -> set[str]:
        """
        Get all registered action keys.

        Returns:
            set[str]: Set of all registered action keys
        """
        return {
            value
            for key, value in cls.__dict__.items()
            if key.isupper() and isinstance(value, str)
        }

    @classmethod
    def validate_action(cls, action: str) -> None:
        """
        Validate that a custom action key doesn't collide with a registered one.

        Raises:
            ValueError: If the action is already registered
        """
        if action in cls.all_actions():
            raise ValueError(
                f"Rate limit action '{action}' is already registered. "
                f"Existing actions: {cls.all_actions()}"
            )


class FieldSizes:
    # Common string lengths
    MEDIUM = 255

    # Specific field sizes
    EMAIL = MEDIUM
    PASSWORD = MEDIUM
