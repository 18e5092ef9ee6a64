import asyncio
import unittest
from unittest.mock import AsyncMock, MagicMock

from abstractions.liveness_store import LivenessStore
from core.liveness_heartbeat import LivenessHeartbeat


class TestLivenessHeartbeat(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.store = MagicMock(spec=LivenessStore)
        self.store.store_alive = AsyncMock()
        self.logger = MagicMock()
        self.heartbeat = LivenessHeartbeat(
            liveness_store=self.store,
            ttl=600,
            heartbeat_interval=0.01,
            logger=self.logger,
        )

    async def test_init(self):
        self.assertEqual(self.heartbeat.ttl, 600)
        self.assertEqual(self.heartbeat.heartbeat_interval, 0.01)
        self.assertFalse(self.heartbeat._running)

    async def test_beat_writes_token(self):
        await self.heartbeat.beat()
        self.store.store_alive.assert_awaited_once_with(600)

    async def test_start_and_stop(self):
        await self.heartbeat.start()
        await asyncio.sleep(0.05)
        self.assertTrue(self.heartbeat._running)
        await self.heartbeat.stop()
        self.assertFalse(self.heartbeat._running)
        self.assertIsNone(self.heartbeat._task)
        self.assertGreaterEqual(self.store.store_alive.await_count, 1)

    async def test_errors_do_not_stop_the_loop(self):
        self.store.store_alive.side_effect = [ConnectionError("down"), None, None, None, None]
        await self.heartbeat.start()
        await asyncio.sleep(0.05)
        await self.heartbeat.stop()
        self.logger.error.assert_called()
        self.assertGreaterEqual(self.store.store_alive.await_count, 2)


if __name__ == "__main__":
    unittest.main()
