import copy
import threading
from dataclasses import replace
from typing import Dict, List, Optional

from thankcast.domain.entities.compositing_job import (
    CompositingJob,
    JobStatus,
    transition_changes,
    validate_new_job,
)
from thankcast.domain.errors import JobNotFound, JobValidationError
from thankcast.domain.repositories.compositing_job_repository import CompositingJobRepository


class InMemoryCompositingJobRepository(CompositingJobRepository):
    """Process-local job store for ENV=local runs."""

    def __init__(self):
        self._jobs: Dict[str, CompositingJob] = {}
        self._lock = threading.Lock()

    def create(self, job: CompositingJob) -> str:
        validate_new_job(job)
        with self._lock:
            if job.id in self._jobs:
                raise JobValidationError(f"Compositing job {job.id} already exists")
            self._jobs[job.id] = copy.deepcopy(job)
        return job.id

    def get_by_id(self, job_id: str) -> Optional[CompositingJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            return copy.deepcopy(job) if job else None

    def transition(
        self,
        job_id: str,
        new_status: JobStatus,
        output_path: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> CompositingJob:
        with self._lock:
            current = self._jobs.get(job_id)
            if current is None:
                raise JobNotFound(f"Compositing job {job_id} not found")
            changes = transition_changes(current, new_status, output_path=output_path, error_message=error_message)
            updated = replace(current, **changes)
            self._jobs[job_id] = updated
            return copy.deepcopy(updated)

    def list_active_for_owner(self, owner_id: str) -> List[CompositingJob]:
        with self._lock:
            jobs = [
                copy.deepcopy(j) for j in self._jobs.values()
                if j.owner_id == owner_id and j.status in (JobStatus.PENDING, JobStatus.PROCESSING)
            ]
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)
