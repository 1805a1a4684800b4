from thankcast.domain.repositories.compositing_job_repository import CompositingJobRepository

class ListActiveJobsUseCase:
    def __init__(self, job_repo: CompositingJobRepository):
        self.job_repo = job_repo

    def execute(self, user_id: str):
        jobs = self.job_repo.list_active_for_owner(user_id)

        # Dashboard card: only what the progress list shows
        return [
            {
                "id": j.id,
                "status": j.status.value,
                "video_record_id": j.video_record_id,
                "recipient_name": j.recipient_name,
                "created_at": j.created_at,
                "started_at": j.started_at,
            }
            for j in jobs
        ]
