import asyncio
import logging
from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RedisConnection:
    """
    Lazily created Redis client with a single reconnect-and-retry on connection errors.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379", db: int = 0):
        """
        Initialize the RedisConnection.

        Args:
            redis_url (str): Redis connection URL.
            db (int): Redis database number to use.
        """
        self.redis_url = redis_url
        self.db = db
        self._redis: Optional[Redis] = None
        self._connection_lock = asyncio.Lock()
        self._connection_healthy = False

    async def get(self) -> Redis:
        """
        Return a connected client, creating it on first use.

        Returns:
            Redis: Redis client instance.
        """
        if self._redis and self._connection_healthy:
            return self._redis

        async with self._connection_lock:
            if self._redis and self._connection_healthy:
                return self._redis

            await self._discard()
            try:
                self._redis = Redis.from_url(
                    self.redis_url,
                    db=self.db,
                    decode_responses=True,
                    socket_connect_timeout=3,
                    socket_timeout=3,
                    retry_on_timeout=True,
                    health_check_interval=30,
                )
                await self._redis.ping()
                self._connection_healthy = True
                logger.info(f"Redis connected: {self.redis_url}")
            except (ConnectionError, OSError, RedisError) as e:
                self._connection_healthy = False
                self._redis = None
                logger.error(f"Redis connection failed: {e}")
                raise

        return self._redis

    async def execute(self, operation):
        """
        Run ``operation(redis)``, reconnecting and retrying once on connection errors.

        Args:
            operation: Async function that takes the Redis client as parameter.

        Returns:
            Result of the operation.
        """
        try:
            redis = await self.get()
            return await operation(redis)
        except (ConnectionError, RedisError):
            self._connection_healthy = False
            try:
                redis = await self.get()
                return await operation(redis)
            except Exception as e:
                logger.error(f"Redis operation failed after retry: {e}")
                raise

    async def _discard(self):
        if self._redis is None:
            return
        try:
            await self._redis.aclose()
        except (ConnectionError, OSError, RedisError) as e:
            logger.debug(f"Ignoring error while closing Redis client: {e}")
        finally:
            self._redis = None
            self._connection_healthy = False

    async def close(self):
        """
        Close the Redis client if one was created.
        """
        async with self._connection_lock:
            await self._discard()
