from abc import ABC, abstractmethod
from typing import List, Optional
from thankcast.domain.entities.compositing_job import CompositingJob, JobStatus

class CompositingJobRepository(ABC):
    @abstractmethod
    def create(self, job: CompositingJob) -> str:
        pass

    @abstractmethod
    def get_by_id(self, job_id: str) -> Optional[CompositingJob]:
        pass

    @abstractmethod
    def transition(
        self,
        job_id: str,
        new_status: JobStatus,
        output_path: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> CompositingJob:
        pass

    @abstractmethod
    def list_active_for_owner(self, owner_id: str) -> List[CompositingJob]:
        pass
