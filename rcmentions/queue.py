"""Background queue worker for single-item mention detection jobs.

Jobs carry ``{contentId, contentType}``. A fixed number of worker tasks pull
from an `asyncio.Queue`, wait on a shared `RateLimiter`, and call
`MentionOrchestrator.process_content`. Failures are retried at the job
level with exponential backoff, except `ContentNotFoundError`, which is
final on the first attempt.

The worker keeps running counters and the results of failed jobs only, so a
long-lived worker does not accumulate completed results.
"""

import asyncio
import itertools
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from rcmentions.config import QueueConfig
from rcmentions.content import ContentType
from rcmentions.errors import ContentNotFoundError
from rcmentions.logging import setup_logging
from rcmentions.orchestrator import ContentResult, MentionOrchestrator
from rcmentions.rate_limit import RateLimiter

logger = setup_logging()


class MentionJob(BaseModel):
    """Queue payload identifying one content item."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    content_id: str
    content_type: ContentType


class JobStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class JobResult(BaseModel):
    """Final outcome of a job after all attempts."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    job: MentionJob
    status: JobStatus
    attempts: int
    result: ContentResult | None = None
    error: str | None = None
    finished_at: datetime


def backoff_delay(attempt: int, initial: float) -> float:
    """Delay before retry number ``attempt`` (1-based): ``initial * 2 ** (attempt - 1)``."""
    return initial * 2 ** (attempt - 1)


class MentionQueueWorker:
    """Runs mention detection jobs with bounded concurrency, rate limiting and retries.

    Args:
        orchestrator: Performs the detection for each job.
        config: Concurrency, rate and retry policy.
        rate_limiter: Shared limiter; one is built from ``config`` when omitted.
        sleep: Awaitable sleep used for backoff, injectable for tests.

    Attributes:
        completed_count: Number of jobs that finished successfully.
        failed_count: Number of jobs that failed after all attempts.
        failed: Final results of failed jobs, by job id, until `clear_failed` is called.

    Example:
        ```python
        worker = MentionQueueWorker(orchestrator)
        await worker.start()
        await worker.enqueue("ep-1", ContentType.PODCAST)
        await worker.join()
        await worker.stop()
        ```
    """

    def __init__(
        self,
        orchestrator: MentionOrchestrator,
        config: QueueConfig | None = None,
        rate_limiter: RateLimiter | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.orchestrator = orchestrator
        self.config = config or QueueConfig()
        self.rate_limiter = rate_limiter or RateLimiter(self.config.operations_per_second)
        self._sleep = sleep
        self._queue: asyncio.Queue[tuple[str, MentionJob]] = asyncio.Queue()
        self._tasks: list[asyncio.Task] = []
        self._ids = itertools.count(1)
        self._active = 0
        self.completed_count = 0
        self.failed_count = 0
        self.failed: dict[str, JobResult] = {}

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    async def start(self) -> None:
        """Start ``config.concurrency`` worker tasks. Calling twice is a no-op."""
        if self._tasks:
            return
        for _ in range(self.config.concurrency):
            self._tasks.append(asyncio.create_task(self._worker_loop()))
        logger.info(f"Started {self.config.concurrency} mention worker(s)")

    async def stop(self) -> None:
        """Cancel worker tasks. Jobs still queued stay queued."""
        for task in self._tasks:
            task.cancel()
        for task in self._tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks.clear()
        logger.info("Stopped mention workers")

    async def enqueue(self, content_id: str, content_type: ContentType | str) -> str:
        """Queue one content item and return its job id."""
        job = MentionJob(content_id=content_id, content_type=ContentType(content_type))
        job_id = str(next(self._ids))
        await self._queue.put((job_id, job))
        return job_id

    async def join(self) -> None:
        """Wait until every queued job has finished."""
        await self._queue.join()

    async def enqueue_unprocessed(
        self,
        content_type: ContentType,
        max_age_hours: float | None = None,
        limit: int | None = None,
    ) -> list[str]:
        """Queue the recently published, unprocessed items of one content type.

        Selection is the same as a batch run: newest first, within
        ``max_age_hours`` of the orchestrator's clock, at most ``limit`` items.
        Both default to the orchestrator's batch settings.
        """
        batch = self.orchestrator.settings.batch
        if max_age_hours is None:
            max_age_hours = batch.max_age_hours
        if limit is None:
            limit = batch.limit
        candidates = await self.orchestrator.content_store.select_unprocessed(
            content_type, max_age_hours, limit, self.orchestrator.clock().now
        )
        job_ids = [await self.enqueue(c.content_id, content_type) for c in candidates]
        logger.info(f"Queued {len(job_ids)} unprocessed {content_type.value} items")
        return job_ids

    def clear_failed(self) -> list[JobResult]:
        """Return the failed results kept so far and forget them."""
        failures = list(self.failed.values())
        self.failed.clear()
        return failures

    def status(self) -> dict[str, int]:
        return {
            "queued": self._queue.qsize(),
            "active": self._active,
            "completed": self.completed_count,
            "failed": self.failed_count,
        }

    async def _worker_loop(self) -> None:
        while True:
            try:
                job_id, job = await self._queue.get()
                self._active += 1
                try:
                    self._record(await self.run_job(job_id, job))
                finally:
                    self._active -= 1
                    self._queue.task_done()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception(f"Worker loop error: {e}")

    def _record(self, result: JobResult) -> None:
        # Completed results are dropped; failures stay until cleared.
        if result.status == JobStatus.COMPLETED:
            self.completed_count += 1
        else:
            self.failed_count += 1
            self.failed[result.job_id] = result

    async def run_job(self, job_id: str, job: MentionJob) -> JobResult:
        """Run one job to completion, retrying retryable failures."""
        attempt = 0
        while True:
            attempt += 1
            await self.rate_limiter.acquire()
            try:
                result = await self.orchestrator.process_content(job.content_id, job.content_type)
            except ContentNotFoundError as e:
                logger.warning(f"Job {job_id}: {e}")
                return self._finish(job_id, job, JobStatus.FAILED, attempt, error=str(e))
            except Exception as e:
                if attempt >= self.config.max_attempts:
                    logger.error(
                        f"Failed to process {job.content_type.value} {job.content_id} after {attempt} attempts: {e}"
                    )
                    return self._finish(job_id, job, JobStatus.FAILED, attempt, error=str(e))
                delay = backoff_delay(attempt, self.config.backoff_initial_seconds)
                logger.warning(f"Job {job_id} attempt {attempt} failed ({e}); retrying in {delay:.1f}s")
                await self._sleep(delay)
                continue
            logger.info(f"Processed {job.content_type.value} {job.content_id}")
            return self._finish(job_id, job, JobStatus.COMPLETED, attempt, result=result)

    def _finish(
        self,
        job_id: str,
        job: MentionJob,
        status: JobStatus,
        attempts: int,
        result: ContentResult | None = None,
        error: str | None = None,
    ) -> JobResult:
        return JobResult(
            job_id=job_id,
            job=job,
            status=status,
            attempts=attempts,
            result=result,
            error=error,
            finished_at=datetime.now(timezone.utc),
        )
