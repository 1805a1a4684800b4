import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import AsyncIterator, Callable, Optional

from thankcast.config import POLL_INTERVAL_SECONDS, POLL_TIMEOUT_SECONDS
from thankcast.domain.entities.compositing_job import (
    CompositingJob,
    JobStatus,
    SUCCESS_STATUSES,
    TERMINAL_STATUSES,
)
from thankcast.domain.repositories.compositing_job_repository import CompositingJobRepository

logger = logging.getLogger(__name__)

STILL_PROCESSING_MESSAGE = "Video is still processing. You will be notified when it is ready."


class WatchOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class JobEvent:
    status: JobStatus
    job: CompositingJob


@dataclass
class WatchResult:
    outcome: WatchOutcome
    output_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.outcome == WatchOutcome.SUCCEEDED


class JobPoller:
    """
    Watches one job until it reaches a terminal state.

    Instances hold no shared state, so any number can watch different
    jobs concurrently on the same event loop.
    """

    def __init__(
        self,
        repository: CompositingJobRepository,
        interval: float = POLL_INTERVAL_SECONDS,
        timeout: float = POLL_TIMEOUT_SECONDS,
    ):
        self.repository = repository
        self.interval = interval
        self.timeout = timeout

    async def events(self, job_id: str, interval: Optional[float] = None) -> AsyncIterator[JobEvent]:
        """Yields a JobEvent each time the observed status changes; stops after a terminal one."""
        interval = self.interval if interval is None else interval
        last_status = None
        while True:
            try:
                job = await asyncio.to_thread(self.repository.get_by_id, job_id)
            except Exception as e:
                logger.warning(f"⚠️ Polling job {job_id} failed, retrying: {e}")
                job = None
            else:
                if job is None:
                    logger.warning(f"⚠️ Job {job_id} not visible yet, retrying")

            if job is not None and job.status != last_status:
                last_status = job.status
                yield JobEvent(status=job.status, job=job)
                if job.status in TERMINAL_STATUSES:
                    return

            await asyncio.sleep(interval)

    async def watch(
        self,
        job_id: str,
        timeout: Optional[float] = None,
        interval: Optional[float] = None,
        on_progress: Optional[Callable[[JobEvent], None]] = None,
    ) -> WatchResult:
        timeout = self.timeout if timeout is None else timeout

        async def _follow() -> WatchResult:
            async for event in self.events(job_id, interval=interval):
                if on_progress:
                    on_progress(event)
                if event.status in SUCCESS_STATUSES:
                    return WatchResult(WatchOutcome.SUCCEEDED, output_path=event.job.output_path)
                if event.status == JobStatus.FAILED:
                    return WatchResult(
                        WatchOutcome.FAILED,
                        error=event.job.error_message or "Video processing failed",
                    )
            return WatchResult(WatchOutcome.FAILED, error="Job stream ended unexpectedly")

        try:
            return await asyncio.wait_for(_follow(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.info(f"⏳ Stopped watching job {job_id} after {timeout}s")
            return WatchResult(WatchOutcome.TIMED_OUT, error=STILL_PROCESSING_MESSAGE)

    def watch_sync(self, job_id: str, **kwargs) -> WatchResult:
        """Blocking wrapper for callers outside an event loop (CLI)."""
        return asyncio.run(self.watch(job_id, **kwargs))
