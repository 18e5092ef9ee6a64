import logging
import time
from typing import Optional

from abstractions.liveness_store import LivenessStore
from core.profiler import Profiler
from core.redis_connection import RedisConnection

logger = logging.getLogger(__name__)


class RedisLivenessStore(LivenessStore):
    """
    Liveness store backed by a Redis key that expires unless the worker refreshes it.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        db: int = 0,
        key_prefix: str = "worker_liveness",
        connection: Optional[RedisConnection] = None,
    ):
        self.connection = connection or RedisConnection(redis_url=redis_url, db=db)
        self.alive_key = f"{key_prefix}:alive"
        logger.info(f"RedisLivenessStore initialized with alive_key={self.alive_key}")

    @Profiler.profile
    async def is_alive(self) -> bool:
        async def _exists(redis):
            return await redis.exists(self.alive_key)

        return bool(await self.connection.execute(_exists))

    @Profiler.profile
    async def store_alive(self, ttl: int):
        async def _set(redis):
            await redis.set(self.alive_key, str(time.time()), ex=ttl)

        await self.connection.execute(_set)

    async def close(self):
        await self.connection.close()
