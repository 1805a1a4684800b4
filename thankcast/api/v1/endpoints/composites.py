import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header, HTTPException

from thankcast.api.auth import get_current_user
from thankcast.api.v1.schemas.compositing import (
    CompositingJobRequest,
    CompositingJobResponse,
    WebhookPayload,
)
from thankcast.application.task_runner import enqueue_compositing_job
from thankcast.application.use_cases.get_compositing_job import GetCompositingJobUseCase
from thankcast.application.use_cases.list_active_jobs import ListActiveJobsUseCase
from thankcast.application.use_cases.submit_compositing_job import SubmitCompositingJobUseCase
from thankcast.config import SIGNED_URL_TTL_INTERNAL, VIDEO_BUCKET, WEBHOOK_SECRET
from thankcast.domain.entities.compositing_job import CompositingJob, JobStatus
from thankcast.domain.errors import JobValidationError, StorageError
from thankcast.infrastructure.factory import get_job_repository, get_object_storage, get_worker

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/composites", tags=["Composites"])

# Wire up the dependencies
def submit_job_use_case(repo=Depends(get_job_repository)):
    return SubmitCompositingJobUseCase(repo)

def get_job_use_case(repo=Depends(get_job_repository)):
    return GetCompositingJobUseCase(repo)

def list_active_jobs_use_case(repo=Depends(get_job_repository)):
    return ListActiveJobsUseCase(repo)

def get_webhook_secret():
    return WEBHOOK_SECRET


def _to_response(job: CompositingJob, output_url: Optional[str] = None) -> CompositingJobResponse:
    return CompositingJobResponse(
        id=job.id,
        status=job.status.value,
        output_path=job.output_path,
        output_url=output_url,
        error_message=job.error_message,
        created_at=job.created_at,
        started_at=job.started_at,
        completed_at=job.completed_at,
    )


@router.post("", response_model=CompositingJobResponse, status_code=202)
async def submit_composite(
    request: CompositingJobRequest,
    background_tasks: BackgroundTasks,
    user=Depends(get_current_user),
    use_case: SubmitCompositingJobUseCase = Depends(submit_job_use_case),
    worker=Depends(get_worker),
):
    try:
        job = use_case.execute(user.id, request.model_dump())
    except JobValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception(f"API Error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    enqueue_compositing_job(background_tasks, job, worker)
    return _to_response(job)


@router.post("/webhook")
async def compositing_webhook(
    payload: WebhookPayload,
    background_tasks: BackgroundTasks,
    x_webhook_secret: Optional[str] = Header(None),
    secret: str = Depends(get_webhook_secret),
    worker=Depends(get_worker),
):
    """
    Database webhook on the jobs table. Only a freshly inserted pending
    row starts the worker; every other event is acknowledged and ignored.
    """
    if secret and x_webhook_secret != secret:
        raise HTTPException(status_code=401, detail="Invalid webhook secret")

    record = payload.record or {}
    if payload.type != "INSERT" or record.get("status") != JobStatus.PENDING.value:
        logger.info(f"⏭️ Ignoring {payload.type} event for job {record.get('id')} (status: {record.get('status')})")
        return {"queued": False, "message": "Not a new pending job, skipping"}

    try:
        job = CompositingJob.from_dict(record)
    except JobValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    enqueue_compositing_job(background_tasks, job, worker)
    return {"queued": True, "job_id": job.id}


@router.get("")
async def list_active_composites(
    user=Depends(get_current_user),
    use_case: ListActiveJobsUseCase = Depends(list_active_jobs_use_case),
):
    try:
        return use_case.execute(user.id)
    except Exception as e:
        logger.exception(f"API Error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{job_id}", response_model=CompositingJobResponse)
async def get_composite(
    job_id: str,
    user=Depends(get_current_user),
    use_case: GetCompositingJobUseCase = Depends(get_job_use_case),
    storage=Depends(get_object_storage),
):
    try:
        job = use_case.execute(job_id, user.id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except Exception as e:
        logger.exception(f"API Error: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    if not job:
        raise HTTPException(status_code=404, detail="Compositing job not found")

    output_url = None
    if job.output_path:
        try:
            output_url = storage.create_signed_url(VIDEO_BUCKET, job.output_path, SIGNED_URL_TTL_INTERNAL)
        except StorageError as e:
            logger.warning(f"⚠️ Could not sign output of job {job_id}: {e}")
    return _to_response(job, output_url)
