import logging
import os
import sys

from thankcast.config import ENV
from thankcast.application.job_poller import JobPoller
from thankcast.application.local_compositor import CompositeOptions, LocalCompositor
from thankcast.application.task_runner import run_compositing_task
from thankcast.domain.entities.compositing_job import CompositingJob
from thankcast.infrastructure.capability_prober import default_prober
from thankcast.infrastructure.factory import get_engine, get_job_repository, get_worker

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("thankcast.main")


def run_job(job_id: str) -> int:
    job = get_job_repository().get_by_id(job_id)
    if job is None:
        logger.error(f"❌ Job {job_id} not found")
        return 1
    result = run_compositing_task(job, get_worker())
    logger.info(f"✨ Job {result.job_id}: {result.status.value} -> {result.output_path} (fallback={result.fallback})")
    return 0


def run_local(video_path: str) -> int:
    # Decoration comes from the same env names a task payload would use
    job = CompositingJob.from_dict({
        "videoPath": video_path,
        "customText": os.getenv("CUSTOM_TEXT"),
        "customTextPosition": os.getenv("CUSTOM_TEXT_POSITION", "bottom"),
        "filterId": os.getenv("FILTER_ID"),
        "frameShape": os.getenv("FRAME_SHAPE"),
        "primaryColor": os.getenv("PRIMARY_COLOR", "#06B6D4"),
    })
    compositor = LocalCompositor(get_engine(), default_prober())
    result = compositor.compose(
        video_path,
        CompositeOptions.from_job(job, frame_png_path=os.getenv("FRAME_PNG")),
        on_progress=lambda msg: logger.info(f"⏩ {msg}"),
    )
    logger.info(f"🎬 Output: {result.output_path}")
    if result.degraded:
        logger.warning(f"⚠️ Degraded result, failed steps: {', '.join(result.failed_steps) or 'engine unavailable'}")
    return 0


def watch_job(job_id: str) -> int:
    result = JobPoller(get_job_repository()).watch_sync(
        job_id,
        on_progress=lambda event: logger.info(f"⏩ Job {job_id} is {event.status.value}"),
    )
    logger.info(f"🏁 {result.outcome.value}: {result.output_path or result.error}")
    return 0 if result.success else 1


if __name__ == "__main__":
    logger.info(f"🚀 THANKCAST COMPOSITING [{ENV.upper()} MODE]")

    if os.getenv("JOB_ID"):
        sys.exit(run_job(os.environ["JOB_ID"]))
    if os.getenv("LOCAL_VIDEO"):
        sys.exit(run_local(os.environ["LOCAL_VIDEO"]))
    if os.getenv("WATCH_JOB_ID"):
        sys.exit(watch_job(os.environ["WATCH_JOB_ID"]))

    logger.error("Set JOB_ID, LOCAL_VIDEO or WATCH_JOB_ID")
    sys.exit(2)
