"""Durable job registry."""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Protocol, TypeVar

from ..errors import (
    AlreadyCompletedError,
    DuplicateJobError,
    NotFoundError,
    PersistStoreError,
    VersionConflictError,
)
from ..logging_config import get_logger
from ..models import ConversationReference, JobRecord
from ..storage import IStorage, Scope

logger = get_logger(__name__)

JOBS_KEY = "jobs"

T = TypeVar("T")
Jobs = dict[str, JobRecord]


class IJobRegistry(Protocol):
    """Mapping of job id to job record, persisted as one snapshot."""

    async def create(self, job_id: str, reference: ConversationReference) -> JobRecord:
        """Register a new job. Raises DuplicateJobError if the id exists."""
        ...

    async def lookup(self, job_id: str) -> JobRecord | None:
        """Return the job record, or None."""
        ...

    async def mark_complete(self, job_id: str) -> JobRecord:
        """Flip ``completed`` to True. Raises NotFoundError / AlreadyCompletedError."""
        ...

    async def list_jobs(self) -> list[JobRecord]:
        """Return every job in the current snapshot."""
        ...


class JobRegistry:
    """Job registry stored as a single bot-scope snapshot.

    Every mutation is a read-modify-write of the whole snapshot. Writers in
    this process are serialized by a lock; writers in other processes are
    caught by a compare-and-swap on the snapshot version, after which the
    mutation is re-applied to the fresh snapshot.
    """

    def __init__(self, storage: IStorage, bot_id: str = "bot", max_retries: int = 5):
        self._storage = storage
        self._bot_id = bot_id
        self._max_retries = max_retries
        self._lock = asyncio.Lock()

    async def create(self, job_id: str, reference: ConversationReference) -> JobRecord:
        """Register a new job. Raises DuplicateJobError if the id exists."""
        job_id = str(job_id)

        def insert(jobs: Jobs) -> JobRecord:
            if job_id in jobs:
                raise DuplicateJobError(job_id)
            record = JobRecord(
                id=job_id,
                reference=reference,
                created_at=datetime.now(timezone.utc),
            )
            jobs[job_id] = record
            return record

        record = await self._mutate(insert)
        logger.info("Job %s created", job_id, extra={"job_id": job_id})
        return record

    async def lookup(self, job_id: str) -> JobRecord | None:
        """Return the job record, or None."""
        jobs, _ = await self._read()
        return jobs.get(str(job_id))

    async def mark_complete(self, job_id: str) -> JobRecord:
        """Flip ``completed`` to True. Raises NotFoundError / AlreadyCompletedError."""
        job_id = str(job_id)

        def complete(jobs: Jobs) -> JobRecord:
            record = jobs.get(job_id)
            if record is None:
                raise NotFoundError(job_id)
            if record.completed:
                raise AlreadyCompletedError(job_id)
            record = record.mark_completed(datetime.now(timezone.utc))
            jobs[job_id] = record
            return record

        record = await self._mutate(complete)
        logger.info("Job %s completed", job_id, extra={"job_id": job_id})
        return record

    async def list_jobs(self) -> list[JobRecord]:
        """Return every job in the current snapshot."""
        jobs, _ = await self._read()
        return list(jobs.values())

    async def _read(self) -> tuple[Jobs, int]:
        stored = await self._storage.get_property(Scope.BOT, self._bot_id, JOBS_KEY)
        if stored is None:
            return {}, 0
        jobs = {
            job_id: JobRecord.from_dict(data) for job_id, data in stored.value.items()
        }
        return jobs, stored.version

    async def _mutate(self, mutation: Callable[[Jobs], T]) -> T:
        """Apply ``mutation`` to the snapshot and persist it with compare-and-swap.

        Domain errors raised by ``mutation`` propagate before anything is
        written.
        """
        async with self._lock:
            for attempt in range(1, self._max_retries + 1):
                jobs, version = await self._read()
                result = mutation(jobs)
                snapshot = {job_id: record.to_dict() for job_id, record in jobs.items()}
                try:
                    await self._storage.put_property(
                        Scope.BOT,
                        self._bot_id,
                        JOBS_KEY,
                        snapshot,
                        expected_version=version,
                    )
                    return result
                except VersionConflictError:
                    logger.warning(
                        "Job snapshot changed concurrently, retrying (attempt %s/%s)",
                        attempt,
                        self._max_retries,
                    )

        raise PersistStoreError(
            f"Job snapshot kept changing; gave up after {self._max_retries} attempts"
        )
