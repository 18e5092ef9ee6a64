import asyncio
import logging
from typing import Optional

from abstractions.liveness_store import LivenessStore


class LivenessHeartbeat:
    """
    Worker-side loop that keeps the liveness token fresh while the job loop runs.
    """

    def __init__(
        self,
        liveness_store: LivenessStore,
        ttl: int,
        heartbeat_interval: float,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the LivenessHeartbeat.

        Args:
            liveness_store (LivenessStore): Store receiving the token.
            ttl (int): Time to live of each token write, in seconds.
            heartbeat_interval (float): Seconds between token writes.
            logger (Optional[logging.Logger]): Logger to report through.
        """
        self.liveness_store = liveness_store
        self.ttl = ttl
        self.heartbeat_interval = heartbeat_interval
        self.logger = logger or logging.getLogger(__name__)
        self._task = None
        self._running = False

    async def start(self):
        """
        Start the heartbeat loop as an asynchronous task.
        """
        self._running = True
        self._task = asyncio.create_task(self._heartbeat_loop())
        self.logger.info("[LivenessProbe] Heartbeat loop started.")

    async def stop(self):
        """
        Stop the heartbeat loop and wait for the task to finish.
        """
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.logger.info("[LivenessProbe] Heartbeat loop stopped.")

    async def beat(self):
        await self.liveness_store.store_alive(self.ttl)
        self.logger.debug(f"[LivenessProbe] Alive key refreshed with ttl={self.ttl}s")

    async def _heartbeat_loop(self):
        while self._running:
            try:
                await self.beat()
            except Exception as e:
                self.logger.error(f"[LivenessProbe] Error refreshing alive key: {e}")
            await asyncio.sleep(self.heartbeat_interval)
