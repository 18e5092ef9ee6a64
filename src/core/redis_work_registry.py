import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from abstractions.work_registry import WorkRegistry
from contracts.work import InFlightJob, JobPayload, WorkerProcess
from core.profiler import Profiler
from core.redis_connection import RedisConnection

logger = logging.getLogger(__name__)


class RedisWorkRegistry(WorkRegistry):
    """
    Work registry stored in Redis.

    Layout: a ``processes`` set of identities, a ``<identity>`` hash holding the
    process ``hostname`` and a ``<identity>:work`` hash mapping each busy slot
    to a JSON document ``{"payload": {"class": ..., "args": [...]}, "run_at": epoch}``.
    The payload may also be stored as a JSON-encoded string.
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        db: int = 0,
        key_prefix: str = "",
        connection: Optional[RedisConnection] = None,
    ):
        self.connection = connection or RedisConnection(redis_url=redis_url, db=db)
        self.key_prefix = key_prefix
        self.processes_key = f"{key_prefix}processes"
        logger.info(f"RedisWorkRegistry initialized with processes_key={self.processes_key}")

    def _process_key(self, identity: str) -> str:
        return f"{self.key_prefix}{identity}"

    def _work_key(self, identity: str) -> str:
        return f"{self.key_prefix}{identity}:work"

    async def _identities(self, redis) -> List[str]:
        return sorted(await redis.smembers(self.processes_key))

    @Profiler.profile
    async def list_processes(self) -> List[WorkerProcess]:
        async def _list(redis):
            identities = await self._identities(redis)
            if not identities:
                return []
            async with redis.pipeline(transaction=False) as pipe:
                for identity in identities:
                    pipe.hget(self._process_key(identity), "hostname")
                hostnames = await pipe.execute()
            return [
                WorkerProcess(hostname=hostname, identity=identity)
                for identity, hostname in zip(identities, hostnames)
                if hostname
            ]

        return await self.connection.execute(_list)

    @Profiler.profile
    async def list_in_flight_jobs(self) -> List[InFlightJob]:
        async def _list(redis):
            identities = await self._identities(redis)
            if not identities:
                return []
            async with redis.pipeline(transaction=False) as pipe:
                for identity in identities:
                    pipe.hgetall(self._work_key(identity))
                work_per_process = await pipe.execute()

            jobs = []
            for identity, work in zip(identities, work_per_process):
                for slot, raw in (work or {}).items():
                    job = self._parse_work(identity, slot, raw)
                    if job is not None:
                        jobs.append(job)
            return jobs

        return await self.connection.execute(_list)

    def _parse_work(self, identity: str, slot: str, raw: str) -> Optional[InFlightJob]:
        try:
            work = json.loads(raw)
            payload = work["payload"]
            if isinstance(payload, str):
                payload = json.loads(payload)
            return InFlightJob(
                process_identity=identity,
                payload=JobPayload.model_validate(payload),
                started_at=float(work["run_at"]),
            )
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            logger.warning(f"Skipping unreadable work entry {identity}/{slot}: {e}")
            return None

    async def register_process(self, process: WorkerProcess):
        async def _register(redis):
            async with redis.pipeline(transaction=True) as pipe:
                pipe.sadd(self.processes_key, process.identity)
                pipe.hset(self._process_key(process.identity), "hostname", process.hostname)
                await pipe.execute()

        await self.connection.execute(_register)
        logger.info(f"Registered worker process {process.identity} on {process.hostname}")

    async def unregister_process(self, identity: str):
        async def _unregister(redis):
            async with redis.pipeline(transaction=True) as pipe:
                pipe.srem(self.processes_key, identity)
                pipe.delete(self._process_key(identity), self._work_key(identity))
                await pipe.execute()

        await self.connection.execute(_unregister)
        logger.info(f"Unregistered worker process {identity}")

    async def record_job_started(
        self, identity: str, slot: str, payload: JobPayload, started_at: float
    ):
        document = json.dumps(
            {"payload": payload.model_dump(by_alias=True), "run_at": started_at}
        )

        async def _record(redis):
            await redis.hset(self._work_key(identity), slot, document)

        await self.connection.execute(_record)

    async def record_job_finished(self, identity: str, slot: str):
        async def _clear(redis):
            await redis.hdel(self._work_key(identity), slot)

        await self.connection.execute(_clear)

    async def close(self):
        await self.connection.close()
