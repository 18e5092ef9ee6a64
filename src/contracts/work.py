from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field


class WorkerProcess(BaseModel):
    """
    A worker process as known to the work registry.
    """

    hostname: str
    identity: str


class JobPayload(BaseModel):
    """
    Job class and arguments as enqueued.
    """

    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(alias="class")
    args: List[Any] = Field(default_factory=list)


class InFlightJob(BaseModel):
    """
    A job currently being run by a worker process.
    """

    process_identity: str
    payload: JobPayload
    started_at: float  # epoch seconds

    def elapsed(self, now: float) -> float:
        return now - self.started_at
