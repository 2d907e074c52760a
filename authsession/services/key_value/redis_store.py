from loguru import logger
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import RedisError

from authsession.core.config import Settings
from authsession.core.exceptions.key_value import StoreError


def create_redis_pool(settings: Settings) -> ConnectionPool:
    """
    Build the Redis connection pool shared by every store client of the process.

    Args:
        settings: Application settings holding the Redis address and timeouts

    Returns:
        ConnectionPool: Pool with decoded (str) responses

    Note:
        ``retry_on_timeout`` stays off: a timed out store call surfaces as
        ``StoreError`` and the caller decides whether to retry.
    """
    pool = ConnectionPool.from_url(
        settings.redis_url.human_repr(),
        encoding="utf-8",
        decode_responses=True,
        max_connections=settings.redis_max_pool_connections,
        retry_on_timeout=False,
        socket_connect_timeout=settings.redis_socket_connect_timeout,
        socket_timeout=settings.redis_socket_timeout,
    )
    logger.info(
        f"Redis connection pool created with max_connections={settings.redis_max_pool_connections}"
    )
    return pool


class RedisKeyValueStore:
    """
    ``KeyValueStore`` backed by Redis.

    ``expire(..., lt=True)`` relies on ``EXPIRE key seconds LT`` (Redis >= 7.0).
    """

    def __init__(self, redis_client: Redis):
        self.redis_client = redis_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisKeyValueStore":
        try:
            client = Redis(connection_pool=create_redis_pool(settings))
        except Exception as e:
            logger.error(f"Failed to initialize Redis for {cls.__name__}: {e}")
            raise StoreError("Unable to initialize Redis client", e)

        logger.debug(f"Redis client initialized for {cls.__name__}")
        return cls(client)

    async def get(self, key: str) -> str | None:
        try:
            value = await self.redis_client.get(key)
        except (RedisError, OSError) as e:
            logger.error(f"Store get failed for key {key}: {e}")
            raise StoreError("Store get failed", e, {"key": key})

        if isinstance(value, bytes):
            return value.decode()

        return value

    async def set_ex(self, key: str, value: str | int, ttl: int) -> None:
        try:
            await self.redis_client.set(key, value, ex=ttl)
        except (RedisError, OSError) as e:
            logger.error(f"Store set failed for key {key}: {e}")
            raise StoreError("Store set failed", e, {"key": key})

    async def expire(self, key: str, ttl: int, lt: bool = False) -> bool:
        try:
            return bool(await self.redis_client.expire(key, ttl, lt=lt))
        except (RedisError, OSError) as e:
            logger.error(f"Store expire failed for key {key}: {e}")
            raise StoreError("Store expire failed", e, {"key": key})

    async def incr(self, key: str, delta: int = 1) -> int:
        try:
            return int(await self.redis_client.incrby(key, delta))
        except (RedisError, OSError) as e:
            logger.error(f"Store incr failed for key {key}: {e}")
            raise StoreError("Store incr failed", e, {"key": key})

    async def delete(self, key: str) -> bool:
        try:
            return await self.redis_client.delete(key) > 0
        except (RedisError, OSError) as e:
            logger.error(f"Store delete failed for key {key}: {e}")
            raise StoreError("Store delete failed", e, {"key": key})

    async def ttl(self, key: str) -> int:
        try:
            seconds = await self.redis_client.ttl(key)
        except (RedisError, OSError) as e:
            logger.error(f"Store ttl failed for key {key}: {e}")
            raise StoreError("Store ttl failed", e, {"key": key})

        # -2: missing key, -1: key without expiry
        return max(int(seconds), 0)

    async def health_check(self) -> bool:
        """
        Check Redis connection health by pinging the server.

        Returns:
            bool: True if Redis is healthy and responsive, False otherwise
        """
        try:
            await self.redis_client.ping()
            return True
        except Exception as e:
            logger.error(f"Redis health check failed for {self.__class__.__name__}: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection gracefully"""
        try:
            await self.redis_client.aclose()
            logger.info(f"Redis connection closed for {self.__class__.__name__}")
        except Exception as e:
            logger.error(f"Error closing Redis connection for {self.__class__.__name__}: {e}")
