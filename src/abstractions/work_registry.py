from abc import ABC, abstractmethod
from typing import List

from contracts.work import InFlightJob, JobPayload, WorkerProcess


class WorkRegistry(ABC):
    """
    Abstract base class for the registry of worker processes and their in-flight jobs.
    """

    @abstractmethod
    async def list_processes(self) -> List[WorkerProcess]:
        """
        Return every worker process known to the registry.

        Returns:
            List[WorkerProcess]: Registered processes with hostname and identity.
        """

    @abstractmethod
    async def list_in_flight_jobs(self) -> List[InFlightJob]:
        """
        Return the jobs currently running across all registered processes.

        Returns:
            List[InFlightJob]: In-flight jobs tagged with their owning process identity.
        """

    @abstractmethod
    async def register_process(self, process: WorkerProcess):
        """
        Register a worker process.

        Args:
            process (WorkerProcess): The process to register.
        """

    @abstractmethod
    async def unregister_process(self, identity: str):
        """
        Remove a worker process and its in-flight jobs.

        Args:
            identity (str): Identity of the process to remove.
        """

    @abstractmethod
    async def record_job_started(
        self, identity: str, slot: str, payload: JobPayload, started_at: float
    ):
        """
        Record that a process began running a job.

        Args:
            identity (str): Identity of the owning process.
            slot (str): Worker slot (thread or task id) running the job.
            payload (JobPayload): Job class and arguments.
            started_at (float): Start time in epoch seconds.
        """

    @abstractmethod
    async def record_job_finished(self, identity: str, slot: str):
        """
        Clear the job recorded for a process slot.

        Args:
            identity (str): Identity of the owning process.
            slot (str): Worker slot that finished.
        """

    async def close(self):
        """
        Release any connection held by the registry.
        """
