from enum import StrEnum
from typing import Annotated

from pydantic import Field, field_validator

from authsession.schemas.base import BaseSchema, FrozenSchema
from authsession.schemas.user import User

U64 = Annotated[int, Field(ge=0, le=2**64 - 1)]


class AuthToken(FrozenSchema):
    """
    Credential unit bound to one (user_id, token_id) pair.

    ``expires`` is the unix time at which the cookie carrying the token lapses.
    """

    user_id: U64
    token_id: U64
    token_value: str
    expires: U64

    @field_validator("token_value")
    @classmethod
    def no_delimiter(cls, v: str) -> str:
        if not v or "-" in v:
            raise ValueError("token_value must be non-empty and must not contain '-'")

        return v

    @property
    def store_key(self) -> str:
        return f"auth.{self.user_id}.tokens.{self.token_id}.value"

    def __repr__(self) -> str:
        # token_value is a credential: keep it out of logs and tracebacks
        return f"AuthToken(user_id={self.user_id}, token_id={self.token_id}, expires={self.expires})"

    __str__ = __repr__


class StoredToken(FrozenSchema):
    """Store-side record of a token: ``"<token_value>-<grace_epoch>"``."""

    token_value: str
    grace_epoch: int

    def dump(self) -> str:
        return f"{self.token_value}-{self.grace_epoch}"

    @classmethod
    def parse(cls, raw: str) -> "StoredToken":
        """
        Raises:
            ValueError: If ``raw`` is not exactly two dash-separated fields
                with an integer second field
        """
        fields = raw.split("-")
        if len(fields) != 2 or not fields[0]:
            raise ValueError(f"Expected 2 fields, got {len(fields)}")

        return cls(token_value=fields[0], grace_epoch=int(fields[1]))


class RotationPair(FrozenSchema):
    """
    Request-scoped pairing of the token the client presented and the token
    issued back to it. ``issued`` is ``presented`` when no rotation happened.

    Never persisted and never shared across requests.
    """

    presented: AuthToken
    issued: AuthToken

    @property
    def rotated(self) -> bool:
        return self.issued.token_id != self.presented.token_id


class SessionState(StrEnum):
    NO_TOKEN = "no_token"
    TOKEN_INVALID = "token_invalid"
    TOKEN_VALID = "token_valid"
    TOKEN_VALID_ROTATED = "token_valid_rotated"


class SessionContext(BaseSchema):
    """Outcome of authenticating one request's session cookie."""

    state: SessionState
    user: User | None = None
    pair: RotationPair | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.state in {SessionState.TOKEN_VALID, SessionState.TOKEN_VALID_ROTATED}


class SessionResponse(BaseSchema):
    """Current session as exposed to the page layer."""

    user_id: int
    email: str
    csrf_token: str
    expires: int
