import logging
import os
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional

from thankcast.config import (
    VIDEO_BUCKET,
    FRAME_BUCKET,
    STICKER_BUCKET,
    OUTPUT_PREFIX,
    SIGNED_URL_TTL_DELIVERY,
)
from thankcast.domain.entities.compositing_job import CompositingJob, JobStatus
from thankcast.domain.errors import (
    AssetDownloadFailure,
    CompositingError,
    RenderExecutionFailure,
    StorageError,
    UploadFailure,
)
from thankcast.domain.repositories.compositing_job_repository import CompositingJobRepository
from thankcast.domain.repositories.object_storage import ObjectStorage
from thankcast.application.delivery_trigger import DeliveryTrigger
from thankcast.application.filter_graph import FilterGraphBuilder, StickerInput
from thankcast.application.filter_presets import sticker_png_name
from thankcast.application.path_resolver import resolve_storage_key, frame_asset_locations
from thankcast.infrastructure.capability_prober import CapabilityProvider
from thankcast.infrastructure.ffmpeg_engine import FFmpegEngine
from thankcast.infrastructure.workspace_manager import LocalWorkspace

logger = logging.getLogger(__name__)

# Anything smaller is an error page or an empty placeholder, not a PNG
MIN_STICKER_BYTES = 100
ERROR_TAIL_CHARS = 500


def output_key_for(job_id: str, prefix: str = OUTPUT_PREFIX) -> str:
    return f"{prefix}/{job_id}.mp4"


@dataclass
class WorkerResult:
    job_id: str
    status: JobStatus
    output_path: Optional[str] = None
    fallback: bool = False
    delivered: bool = False


def failure_message(error: Exception) -> str:
    if isinstance(error, RenderExecutionFailure) and error.stderr:
        return f"FFmpeg failed: {error.stderr[-ERROR_TAIL_CHARS:]}"
    return str(error) or type(error).__name__


class CompositingWorker:
    """
    Renders one job end to end: download, one ffmpeg pass, upload, record, deliver.

    Safe to re-run for the same job: the output key depends only on the
    job id and is written with upsert.
    """

    def __init__(
        self,
        repository: CompositingJobRepository,
        storage: ObjectStorage,
        engine: FFmpegEngine,
        prober: CapabilityProvider,
        delivery_trigger: DeliveryTrigger,
        graph_builder: Optional[FilterGraphBuilder] = None,
        workspace_dir=None,
        video_bucket: str = VIDEO_BUCKET,
        frame_bucket: str = FRAME_BUCKET,
        sticker_bucket: str = STICKER_BUCKET,
        delivery_url_ttl: int = SIGNED_URL_TTL_DELIVERY,
    ):
        self.repository = repository
        self.storage = storage
        self.engine = engine
        self.prober = prober
        self.delivery_trigger = delivery_trigger
        self.graph_builder = graph_builder or FilterGraphBuilder()
        self.workspace_dir = workspace_dir
        self.video_bucket = video_bucket
        self.frame_bucket = frame_bucket
        self.sticker_bucket = sticker_bucket
        self.delivery_url_ttl = delivery_url_ttl

    def run(self, job: CompositingJob) -> WorkerResult:
        logger.info(f"🎬 Compositing job {job.id} (video: {job.video_path})")
        self.repository.transition(job.id, JobStatus.PROCESSING)

        try:
            with LocalWorkspace(prefix=f"composite_{job.id}_", base_dir=self.workspace_dir) as ws:
                source_path = self._download_source(job, ws)
                frame_path = self._download_frame(job, ws)
                stickers = self._download_stickers(job, ws)
                rendered_path, fallback = self._render(job, ws, source_path, frame_path, stickers)
                output_key = self._upload(job, rendered_path)
            completed = self.repository.transition(job.id, JobStatus.COMPLETED, output_path=output_key)
        except Exception as e:
            self._mark_failed(job, e)
            raise

        logger.info(f"✅ Job {job.id} completed: {self.video_bucket}/{output_key}")
        delivered = self._deliver(completed)
        return WorkerResult(
            job_id=job.id,
            status=JobStatus.SENT if delivered else JobStatus.COMPLETED,
            output_path=output_key,
            fallback=fallback,
            delivered=delivered,
        )

    def _download_source(self, job: CompositingJob, ws: LocalWorkspace) -> str:
        key = resolve_storage_key(job.video_path, self.video_bucket)
        try:
            data = self.storage.download(self.video_bucket, key)
        except StorageError as e:
            raise AssetDownloadFailure(self.video_bucket, key, e) from e
        suffix = PurePosixPath(key).suffix or ".mp4"
        path = ws.write_bytes(f"source{suffix}", data)
        logger.info(f"📥 Source video ready ({len(data)} bytes)")
        return path

    def _download_frame(self, job: CompositingJob, ws: LocalWorkspace) -> Optional[str]:
        if not job.frame_png_path:
            return None
        for bucket, key in frame_asset_locations(job.frame_png_path, self.frame_bucket, self.video_bucket):
            try:
                data = self.storage.download(bucket, key)
            except StorageError as e:
                logger.warning(f"⚠️ Frame not found at {bucket}/{key}: {e}")
                continue
            logger.info(f"🖼️ Frame downloaded from {bucket}/{key}")
            return ws.write_bytes("frame.png", data)
        logger.warning(f"⚠️ Continuing job {job.id} without its frame")
        return None

    def _download_stickers(self, job: CompositingJob, ws: LocalWorkspace) -> list[StickerInput]:
        inputs = []
        for i, sticker in enumerate(job.stickers):
            png_path = None
            name = sticker_png_name(sticker)
            if name:
                try:
                    data = self.storage.download(self.sticker_bucket, name)
                    if len(data) < MIN_STICKER_BYTES:
                        logger.warning(f"⚠️ Sticker {name} is only {len(data)} bytes, drawing the glyph instead")
                    else:
                        png_path = ws.write_bytes(f"sticker_{i}.png", data)
                except StorageError as e:
                    logger.warning(f"⚠️ Sticker {name} unavailable, drawing the glyph instead: {e}")
            inputs.append(StickerInput(sticker=sticker, png_path=png_path))
        return inputs

    def _render(self, job, ws, source_path, frame_path, stickers):
        """Returns (path, fallback). Without an engine the source is passed through untouched."""
        if not self.prober.probe():
            logger.warning(f"⚠️ Transcoding engine unavailable, job {job.id} keeps the original video")
            return source_path, True

        graph = self.graph_builder.build(job, source_path, frame_path, stickers, text_dir=ws.path)
        graph.write_text_files()
        output_path = ws.get_path("output.mp4")
        logger.info(f"🧩 Filter stages for job {job.id}: {' -> '.join(graph.stages)}")

        try:
            self.engine.transcode(graph.ffmpeg_args(output_path))
        except RenderExecutionFailure as e:
            if not _has_output(output_path):
                raise
            logger.warning(f"⚠️ ffmpeg reported an error but produced output, continuing: {e.stderr[-ERROR_TAIL_CHARS:]}")

        if not _has_output(output_path):
            raise RenderExecutionFailure(f"ffmpeg produced no output for job {job.id}")
        return output_path, False

    def _upload(self, job: CompositingJob, rendered_path: str) -> str:
        key = output_key_for(job.id)
        with open(rendered_path, "rb") as f:
            data = f.read()
        try:
            self.storage.upload(self.video_bucket, key, data, content_type="video/mp4", upsert=True)
        except StorageError as e:
            raise UploadFailure(f"Uploading {self.video_bucket}/{key} failed: {e}") from e
        return key

    def _deliver(self, job: CompositingJob) -> bool:
        if not self.delivery_trigger.should_deliver(job):
            return False
        try:
            url = self.storage.create_signed_url(self.video_bucket, job.output_path, self.delivery_url_ttl)
        except StorageError as e:
            logger.error(f"❌ Could not sign output of job {job.id}, skipping email: {e}")
            return False
        if not self.delivery_trigger.deliver(job, url):
            return False
        try:
            self.repository.transition(job.id, JobStatus.SENT)
        except CompositingError as e:
            logger.error(f"❌ Email sent but job {job.id} could not be marked sent: {e}")
        return True

    def _mark_failed(self, job: CompositingJob, error: Exception):
        message = failure_message(error)
        logger.error(f"❌ Job {job.id} failed: {message}")
        try:
            self.repository.transition(job.id, JobStatus.FAILED, error_message=message)
        except CompositingError as e:
            logger.error(f"❌ Could not record failure of job {job.id}: {e}")


def _has_output(path) -> bool:
    return os.path.exists(path) and os.path.getsize(path) > 0
