from .base import BaseSchema, FrozenSchema
from .healthcheck import HealthCheckResponse
from .user import User, UserLogin
from .token import (
    AuthToken,
    RotationPair,
    SessionContext,
    SessionResponse,
    SessionState,
    StoredToken,
)

__all__ = [
    "BaseSchema",
    "FrozenSchema",
    "HealthCheckResponse",
    "User",
    "UserLogin",
    "AuthToken",
    "RotationPair",
    "SessionContext",
    "SessionResponse",
    "SessionState",
    "StoredToken",
]
