from typing import Any, Optional
from thankcast.domain.entities.compositing_job import CompositingJob
from thankcast.domain.repositories.compositing_job_repository import CompositingJobRepository

class SubmitCompositingJobUseCase:
    def __init__(self, job_repo: CompositingJobRepository):
        self.job_repo = job_repo

    def execute(self, owner_id: Optional[str], payload: dict[str, Any]) -> CompositingJob:
        """
        Creates a pending job owned by the caller and returns the full job,
        ready to be handed to the worker.
        """
        job = CompositingJob.from_dict({**payload, "owner_id": owner_id, "status": "pending"})
        self.job_repo.create(job)
        return job
