import unittest
from unittest.mock import AsyncMock, MagicMock

from abstractions.work_registry import WorkRegistry
from contracts.work import InFlightJob, JobPayload, WorkerProcess
from core.memory_work_registry import MemoryWorkRegistry
from core.stuck_job_detector import STUCK_JOB_THRESHOLD_SECONDS, StuckJobDetector

NOW = 1_700_000_000.0


class TestStuckJobDetector(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.registry = MemoryWorkRegistry()
        await self.registry.register_process(WorkerProcess(hostname="host-a", identity="worker-1"))
        await self.registry.register_process(WorkerProcess(hostname="host-b", identity="worker-2"))
        self.logger = MagicMock()
        self.detector = StuckJobDetector(
            self.registry,
            clock=lambda: NOW,
            environ={"HOSTNAME": "host-a"},
            logger=self.logger,
        )

    async def _start_job(self, identity, slot, minutes_ago, class_name="ReportJob"):
        await self.registry.record_job_started(
            identity,
            slot,
            JobPayload(class_name=class_name, args=[42]),
            NOW - minutes_ago * 60,
        )

    async def test_job_older_than_an_hour_is_stuck(self):
        await self._start_job("worker-1", "t1", 61)
        self.assertTrue(await self.detector.is_processing_slowly())
        message = self.logger.info.call_args[0][0]
        self.assertIn("ReportJob", message)
        self.assertIn("[42]", message)

    async def test_recent_job_is_not_stuck(self):
        await self._start_job("worker-1", "t1", 5)
        self.assertFalse(await self.detector.is_processing_slowly())

    async def test_threshold_is_inclusive(self):
        await self.registry.record_job_started(
            "worker-1", "t1", JobPayload(class_name="Edge"), NOW - STUCK_JOB_THRESHOLD_SECONDS
        )
        self.assertTrue(await self.detector.is_processing_slowly())

    async def test_jobs_of_other_processes_are_ignored(self):
        await self._start_job("worker-2", "t1", 120)
        self.assertFalse(await self.detector.is_processing_slowly())

    async def test_unregistered_host_is_not_stuck(self):
        detector = StuckJobDetector(
            self.registry, clock=lambda: NOW, environ={"HOSTNAME": "host-z"}
        )
        await self._start_job("worker-1", "t1", 120)
        self.assertFalse(await detector.is_processing_slowly())

    async def test_missing_hostname_raises(self):
        detector = StuckJobDetector(self.registry, clock=lambda: NOW, environ={})
        with self.assertRaises(KeyError):
            await detector.is_processing_slowly()

    async def test_explicit_identity_skips_hostname_lookup(self):
        detector = StuckJobDetector(self.registry, clock=lambda: NOW, environ={})
        await self._start_job("worker-2", "t1", 90)
        self.assertTrue(await detector.is_processing_slowly("worker-2"))

    async def test_stops_at_first_stuck_job(self):
        registry = MagicMock(spec=WorkRegistry)
        registry.list_processes = AsyncMock(
            return_value=[WorkerProcess(hostname="host-a", identity="worker-1")]
        )
        registry.list_in_flight_jobs = AsyncMock(
            return_value=[
                InFlightJob(
                    process_identity="worker-1",
                    payload=JobPayload(class_name=f"Job{i}"),
                    started_at=NOW - 7200,
                )
                for i in range(3)
            ]
        )
        detector = StuckJobDetector(
            registry, clock=lambda: NOW, environ={"HOSTNAME": "host-a"}, logger=self.logger
        )
        self.assertTrue(await detector.is_processing_slowly())
        self.logger.info.assert_called_once()
        self.assertIn("Job0", self.logger.info.call_args[0][0])

    async def test_custom_hostname_env(self):
        detector = StuckJobDetector(
            self.registry,
            hostname_env="POD_NAME",
            clock=lambda: NOW,
            environ={"POD_NAME": "host-b"},
        )
        self.assertEqual(await detector.resolve_process_identity(), "worker-2")


if __name__ == "__main__":
    unittest.main()
