import logging
import time
from typing import Union

from fastapi import BackgroundTasks

from thankcast.config import WORKER_MAX_ATTEMPTS, WORKER_RETRY_DELAY
from thankcast.domain.entities.compositing_job import CompositingJob
from thankcast.domain.errors import (
    CompositingError,
    IllegalTransition,
    JobNotFound,
    JobValidationError,
)
from thankcast.application.compositing_worker import CompositingWorker, WorkerResult

logger = logging.getLogger(__name__)

# Retrying these cannot change the outcome
NON_RETRYABLE = (IllegalTransition, JobValidationError, JobNotFound)


def run_compositing_task(
    payload: Union[dict, CompositingJob],
    worker: CompositingWorker,
    max_attempts: int = WORKER_MAX_ATTEMPTS,
    retry_delay: float = WORKER_RETRY_DELAY,
    sleep=time.sleep,
) -> WorkerResult:
    """
    Runs the worker for one task payload with a bounded retry.
    The last error is re-raised once the attempts are used up.
    """
    job = payload if isinstance(payload, CompositingJob) else CompositingJob.from_dict(payload)

    attempt = 1
    while True:
        try:
            return worker.run(job)
        except NON_RETRYABLE:
            raise
        except CompositingError as e:
            if attempt >= max_attempts:
                logger.error(f"❌ Job {job.id} gave up after {attempt} attempts: {e}")
                raise
            delay = retry_delay * attempt
            logger.warning(f"🔁 Job {job.id} attempt {attempt}/{max_attempts} failed, retrying in {delay:.1f}s: {e}")
            sleep(delay)
            attempt += 1


def run_compositing_background(job: CompositingJob, worker: CompositingWorker):
    """BackgroundTasks entry point: nobody is left to receive the exception."""
    try:
        run_compositing_task(job, worker)
    except Exception as e:
        logger.exception(f"❌ Background compositing for job {job.id} failed: {e}")


def enqueue_compositing_job(background_tasks: BackgroundTasks, job: CompositingJob, worker: CompositingWorker):
    background_tasks.add_task(run_compositing_background, job, worker)
    logger.info(f"📬 Queued compositing job {job.id}")
