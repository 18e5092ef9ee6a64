import logging
import time

from abstractions.liveness_store import LivenessStore

logger = logging.getLogger(__name__)


class MemoryLivenessStore(LivenessStore):
    """
    In-process liveness store keeping the token expiry as a timestamp.
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._expires_at = None

    async def is_alive(self) -> bool:
        return self._expires_at is not None and self._clock() < self._expires_at

    async def store_alive(self, ttl: int):
        self._expires_at = self._clock() + ttl
        logger.debug(f"Liveness token refreshed for {ttl}s")
