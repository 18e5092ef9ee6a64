import asyncio
import logging
from typing import Dict, List

from abstractions.work_registry import WorkRegistry
from contracts.work import InFlightJob, JobPayload, WorkerProcess
from core.profiler import Profiler

logger = logging.getLogger(__name__)


class MemoryWorkRegistry(WorkRegistry):
    """
    In-process work registry, used for local runs and tests.
    """

    def __init__(self):
        self._processes: Dict[str, WorkerProcess] = {}  # identity -> process
        self._work: Dict[str, Dict[str, InFlightJob]] = {}  # identity -> slot -> job
        self._lock = asyncio.Lock()
        logger.info("MemoryWorkRegistry initialized")

    @Profiler.profile
    async def list_processes(self) -> List[WorkerProcess]:
        async with self._lock:
            return list(self._processes.values())

    @Profiler.profile
    async def list_in_flight_jobs(self) -> List[InFlightJob]:
        async with self._lock:
            return [job for slots in self._work.values() for job in slots.values()]

    async def register_process(self, process: WorkerProcess):
        async with self._lock:
            self._processes[process.identity] = process
            self._work.setdefault(process.identity, {})
        logger.info(f"Registered worker process {process.identity} on {process.hostname}")

    async def unregister_process(self, identity: str):
        async with self._lock:
            self._processes.pop(identity, None)
            self._work.pop(identity, None)
        logger.info(f"Unregistered worker process {identity}")

    async def record_job_started(
        self, identity: str, slot: str, payload: JobPayload, started_at: float
    ):
        async with self._lock:
            self._work.setdefault(identity, {})[slot] = InFlightJob(
                process_identity=identity, payload=payload, started_at=started_at
            )
        logger.debug(f"Job {payload.class_name} started on {identity}/{slot}")

    async def record_job_finished(self, identity: str, slot: str):
        async with self._lock:
            self._work.get(identity, {}).pop(slot, None)
        logger.debug(f"Job finished on {identity}/{slot}")
