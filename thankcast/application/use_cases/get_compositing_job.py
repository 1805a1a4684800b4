from typing import Optional
from thankcast.domain.entities.compositing_job import CompositingJob
from thankcast.domain.repositories.compositing_job_repository import CompositingJobRepository

class GetCompositingJobUseCase:
    def __init__(self, job_repo: CompositingJobRepository):
        self.job_repo = job_repo

    def execute(self, job_id: str, user_id: str) -> Optional[CompositingJob]:
        job = self.job_repo.get_by_id(job_id)

        if not job:
            return None

        # Access Check: Ensure user submitted the job
        if job.owner_id != user_id:
            raise PermissionError("User does not have access to this job")

        return job
