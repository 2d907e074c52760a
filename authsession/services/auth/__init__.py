from .csrf import CsrfBinder
from .session_manager import SessionTokenManager
from .token_codec import TokenCodec

__all__ = ["CsrfBinder", "SessionTokenManager", "TokenCodec"]
