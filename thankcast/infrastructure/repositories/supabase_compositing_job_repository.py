import logging
from datetime import datetime
from enum import Enum
from typing import List, Optional

from thankcast.config import JOBS_TABLE
from thankcast.domain.entities.compositing_job import (
    CompositingJob,
    JobStatus,
    transition_changes,
    validate_new_job,
)
from thankcast.domain.errors import CompositingError, ConcurrentJobUpdate, JobNotFound
from thankcast.domain.repositories.compositing_job_repository import CompositingJobRepository
from thankcast.infrastructure.supabase_client import get_supabase

logger = logging.getLogger(__name__)


def _serialize(value):
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value


class SupabaseCompositingJobRepository(CompositingJobRepository):
    def __init__(self, client=None, table: str = JOBS_TABLE):
        self._client = client
        self.table = table

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def create(self, job: CompositingJob) -> str:
        validate_new_job(job)
        res = self.client.table(self.table).insert(self._to_row(job)).execute()
        if not res.data:
            raise CompositingError(f"Failed to create compositing job {job.id}")
        logger.info(f"🆕 Created compositing job {res.data[0]['id']}")
        return res.data[0]["id"]

    def get_by_id(self, job_id: str) -> Optional[CompositingJob]:
        res = self.client.table(self.table).select("*").eq("id", job_id).limit(1).execute()
        if not res.data:
            return None
        return self._map_to_entity(res.data[0])

    def transition(
        self,
        job_id: str,
        new_status: JobStatus,
        output_path: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> CompositingJob:
        current = self.get_by_id(job_id)
        if current is None:
            raise JobNotFound(f"Compositing job {job_id} not found")

        changes = transition_changes(current, new_status, output_path=output_path, error_message=error_message)
        payload = {k: _serialize(v) for k, v in changes.items()}

        # Conditional on the status we validated against, so the guard and the write are one update
        res = (
            self.client
            .table(self.table)
            .update(payload)
            .eq("id", job_id)
            .eq("status", current.status.value)
            .execute()
        )
        if not res.data:
            raise ConcurrentJobUpdate(
                f"Job {job_id} left status '{current.status.value}' before it could move to '{new_status.value}'"
            )
        return self._map_to_entity(res.data[0])

    def list_active_for_owner(self, owner_id: str) -> List[CompositingJob]:
        res = (
            self.client
            .table(self.table)
            .select("*")
            .eq("parent_id", owner_id)
            .in_("status", [JobStatus.PENDING.value, JobStatus.PROCESSING.value])
            .order("created_at", desc=True)
            .execute()
        )
        return [self._map_to_entity(item) for item in res.data or []]

    def _to_row(self, job: CompositingJob) -> dict:
        return {
            "id": job.id,
            "video_path": job.video_path,
            "frame_png_path": job.frame_png_path,
            "frame_shape": job.frame_shape,
            "primary_color": job.primary_color,
            "border_width": job.border_width,
            "custom_text": job.custom_text,
            "custom_text_position": job.custom_text_position.value,
            "custom_text_color": job.custom_text_color,
            "stickers": [s.to_dict() for s in job.stickers],
            "filter_id": job.filter_id,
            "parent_id": job.owner_id,
            "video_id": job.video_record_id,
            "gift_id": job.gift_id,
            "recipient_email": job.recipient_email,
            "recipient_name": job.recipient_name,
            "send_method": job.send_method.value,
            "email_subject": job.email_subject,
            "email_body": job.email_body,
            "child_name": job.child_name,
            "gift_name": job.gift_name,
            "event_name": job.event_name,
            "status": job.status.value,
            "created_at": job.created_at.isoformat(),
        }

    def _map_to_entity(self, data: dict) -> CompositingJob:
        return CompositingJob.from_dict(data)
