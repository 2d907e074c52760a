import hmac

from loguru import logger

from authsession.core.config import RotationPolicy, Settings
from authsession.core.exceptions.session import (
    InvalidSessionError,
    TokenDecodeError,
    UserLookupError,
    UserNotFoundError,
)
from authsession.schemas.token import (
    AuthToken,
    RotationPair,
    SessionContext,
    SessionState,
    StoredToken,
)
from authsession.schemas.user import User
from authsession.services.auth.token_codec import TokenCodec
from authsession.services.clock import Clock, SystemClock
from authsession.services.key_value import KeyValueStore
from authsession.services.random import RandomSource
from authsession.services.users import UserLookup


class SessionTokenManager:
    """
    Issues, persists, validates and rotates session tokens.

    Each token lives in the key-value store under
    ``auth.<user_id>.tokens.<token_id>.value`` as ``"<token_value>-<grace_epoch>"``
    with a TTL of the token lifetime. ``grace_epoch`` is the moment from which
    the token is due for rotation under ``RotationPolicy.GRACE_ELAPSED``.

    A superseded or revoked token is not deleted: its TTL is shortened to the
    grace window, so requests already in flight with the old cookie still pass.

    Note:
        Validation and rotation are not guarded by a distributed lock. Two
        concurrent requests presenting the same token may both rotate it; the
        client keeps only the last cookie it receives, and the other fresh
        token is left to expire on its own. If the client later holds a token
        whose sibling won, it is asked to log in again.
    """

    def __init__(
        self,
        store: KeyValueStore,
        codec: TokenCodec,
        user_lookup: UserLookup,
        *,
        token_lifetime: int,
        grace_window: int,
        token_length: int,
        rotation_policy: RotationPolicy,
        random_source: RandomSource | None = None,
        clock: Clock | None = None,
    ):
        if token_lifetime <= 0 or grace_window <= 0:
            raise ValueError("Token lifetime and grace window must be positive")
        if grace_window > token_lifetime:
            raise ValueError("Grace window must not exceed the token lifetime")
        if token_length < 1:
            raise ValueError("Token length must be positive")

        self.store = store
        self.codec = codec
        self.user_lookup = user_lookup
        self.token_lifetime = token_lifetime
        self.grace_window = grace_window
        self.token_length = token_length
        self.rotation_policy = rotation_policy
        self.random_source = random_source or RandomSource()
        self.clock = clock or SystemClock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        store: KeyValueStore,
        codec: TokenCodec,
        user_lookup: UserLookup,
        random_source: RandomSource | None = None,
        clock: Clock | None = None,
    ) -> "SessionTokenManager":
        return cls(
            store,
            codec,
            user_lookup,
            token_lifetime=settings.auth_token_lifetime,
            grace_window=settings.auth_grace_window,
            token_length=settings.auth_token_length,
            rotation_policy=settings.auth_rotation_policy,
            random_source=random_source,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def generate(self, user_id: int) -> AuthToken:
        """
        Build a fresh, not yet persisted token for a user

        Args:
            user_id: Owner of the token

        Returns:
            AuthToken with a random id and value
        """
        return AuthToken(
            user_id=user_id,
            token_id=self.random_source.random_u64(),
            token_value=self.random_source.random_string(self.token_length),
            expires=self.clock.now() + self.token_lifetime,
        )

    async def persist(self, token: AuthToken) -> None:
        """
        Store a token with the full lifetime

        Raises:
            StoreError: If the key-value store fails
        """
        record = StoredToken(
            token_value=token.token_value,
            grace_epoch=self.clock.now() + self.grace_window,
        )
        await self.store.set_ex(token.store_key, record.dump(), self.token_lifetime)

    async def login(self, user_id: int) -> AuthToken:
        """Issue and persist the first token of a new session."""
        token = self.generate(user_id)
        await self.persist(token)
        logger.info(f"Session started for user {user_id} (token {token.token_id})")
        return token

    # ------------------------------------------------------------------
    # Validation and rotation
    # ------------------------------------------------------------------

    async def _read_record(self, token: AuthToken) -> StoredToken:
        context = {"user_id": token.user_id, "token_id": token.token_id}

        raw = await self.store.get(token.store_key)
        if raw is None:
            raise InvalidSessionError("Session token is unknown or expired", context=context)

        try:
            record = StoredToken.parse(raw)
        except ValueError as e:
            logger.warning(f"Malformed session record for user {token.user_id}: {e}")
            raise InvalidSessionError("Session record is malformed", e, context)

        if not hmac.compare_digest(record.token_value.encode(), token.token_value.encode()):
            raise InvalidSessionError("Session token value mismatch", context=context)

        return record

    async def _load_user(self, user_id: int) -> User:
        try:
            user = await self.user_lookup.first_by_id(user_id)
        except Exception as e:
            logger.error(f"User lookup failed for user {user_id}: {e}")
            raise UserLookupError(exception=e, context={"user_id": user_id})

        if user is None:
            raise UserNotFoundError(context={"user_id": user_id})

        return user

    def _needs_rotation(self, record: StoredToken) -> bool:
        if self.rotation_policy == RotationPolicy.ALWAYS:
            return True

        return self.clock.now() >= record.grace_epoch

    async def validate_and_rotate(self, presented: AuthToken) -> tuple[User, AuthToken]:
        """
        Validate a presented token and rotate it when the policy says so

        Args:
            presented: Token decoded from the request cookie

        Returns:
            tuple[User, AuthToken]: The session user and the token the client
                should hold from now on (the presented one if not rotated)

        Raises:
            InvalidSessionError: If the token is unknown, malformed in the store or mismatching
            UserNotFoundError: If the user no longer exists
            UserLookupError: If the user lookup failed
            StoreError: If the key-value store fails
        """
        record = await self._read_record(presented)
        user = await self._load_user(presented.user_id)

        if not self._needs_rotation(record):
            return user, presented

        # The replacement is stored before the old token is shortened so a
        # failed write never leaves the client without a usable token
        issued = self.generate(presented.user_id)
        await self.persist(issued)
        await self.store.expire(presented.store_key, self.grace_window, lt=True)

        logger.debug(
            f"Session token rotated for user {presented.user_id}: "
            f"{presented.token_id} -> {issued.token_id}"
        )
        return user, issued

    async def rotate(self, presented: AuthToken) -> tuple[User, RotationPair]:
        """``validate_and_rotate`` wrapped into the request-scoped pair."""
        user, issued = await self.validate_and_rotate(presented)
        return user, RotationPair(presented=presented, issued=issued)

    async def authenticate(self, raw_token: str | None) -> SessionContext:
        """
        Resolve the session of one request from its cookie value

        Identity failures (undecodable cookie, unknown token, deleted user)
        yield ``TOKEN_INVALID``; infrastructure failures propagate.

        Args:
            raw_token: Cookie value, None when the cookie is absent

        Returns:
            SessionContext: State, user and rotation pair of the request

        Raises:
            StoreError: If the key-value store fails
            UserLookupError: If the user lookup failed
        """
        if not raw_token:
            return SessionContext(state=SessionState.NO_TOKEN)

        try:
            presented = self.codec.decode(raw_token)
        except TokenDecodeError as e:
            logger.debug(f"Session cookie rejected: {e.message}")
            return SessionContext(state=SessionState.TOKEN_INVALID)

        try:
            user, pair = await self.rotate(presented)
        except (InvalidSessionError, UserNotFoundError) as e:
            logger.info(f"Session rejected: {e}")
            return SessionContext(state=SessionState.TOKEN_INVALID)

        state = SessionState.TOKEN_VALID_ROTATED if pair.rotated else SessionState.TOKEN_VALID
        return SessionContext(state=state, user=user, pair=pair)

    # ------------------------------------------------------------------
    # Revocation
    # ------------------------------------------------------------------

    async def revoke(self, token: AuthToken) -> bool:
        """
        Soft revoke: shorten the token TTL to the grace window

        A request already in flight with this token can still succeed until
        the grace window elapses. Call ``destroy`` as well for immediate effect.

        Returns:
            bool: False if the token was already gone or already expiring sooner
        """
        shortened = await self.store.expire(token.store_key, self.grace_window, lt=True)
        logger.info(f"Session token {token.token_id} of user {token.user_id} revoked")
        return shortened

    async def destroy(self, token: AuthToken) -> bool:
        """
        Hard revoke: delete the token record immediately

        Returns:
            bool: True if the record existed
        """
        deleted = await self.store.delete(token.store_key)
        logger.info(f"Session token {token.token_id} of user {token.user_id} deleted")
        return deleted
