import logging
import os
import time
from typing import Optional

from abstractions.work_registry import WorkRegistry
from core.profiler import Profiler

# A job running at least this long marks its worker process as wedged
STUCK_JOB_THRESHOLD_SECONDS = 3600


class StuckJobDetector:
    """
    Detects in-flight jobs of the local worker process that have run for too long.
    """

    def __init__(
        self,
        work_registry: WorkRegistry,
        hostname_env: str = "HOSTNAME",
        threshold: float = STUCK_JOB_THRESHOLD_SECONDS,
        clock=time.time,
        environ=None,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the StuckJobDetector.

        Args:
            work_registry (WorkRegistry): Source of registered processes and in-flight jobs.
            hostname_env (str): Environment variable naming the local host.
            threshold (float): Run time in seconds from which a job counts as stuck.
            clock (Callable[[], float]): Returns the current epoch time.
            environ (Optional[Mapping[str, str]]): Environment to read; defaults to os.environ.
            logger (Optional[logging.Logger]): Logger to report through.
        """
        self.work_registry = work_registry
        self.hostname_env = hostname_env
        self.threshold = threshold
        self._clock = clock
        self._environ = os.environ if environ is None else environ
        self.logger = logger or logging.getLogger(__name__)

    async def resolve_process_identity(self) -> Optional[str]:
        """
        Find the registry identity of the process running on this host.

        Returns:
            Optional[str]: The identity, or None if no process is registered for this host.

        Raises:
            KeyError: If the hostname environment variable is not set.
        """
        hostname = self._environ[self.hostname_env]
        for process in await self.work_registry.list_processes():
            if process.hostname == hostname:
                return process.identity
        return None

    @Profiler.profile
    async def is_processing_slowly(self, process_identity: Optional[str] = None) -> bool:
        """
        Check whether a job of the given (or locally resolved) process exceeded the threshold.

        Args:
            process_identity (Optional[str]): Identity to inspect; resolved from the
                hostname when omitted.

        Returns:
            bool: True as soon as one stuck job is found, False otherwise.
        """
        if process_identity is None:
            process_identity = await self.resolve_process_identity()
        if not process_identity:
            return False

        now = self._clock()
        for job in await self.work_registry.list_in_flight_jobs():
            if job.process_identity != process_identity:
                continue
            elapsed = job.elapsed(now)
            if elapsed >= self.threshold:
                self.logger.info(
                    f"[LivenessProbe] Job running for {elapsed:.0f}s: "
                    f"{job.payload.class_name} - {job.payload.args}"
                )
                return True
        return False
