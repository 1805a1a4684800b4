import logging
from functools import lru_cache

from thankcast.config import ENV, LOCAL_STORAGE_DIR
from thankcast.application.compositing_worker import CompositingWorker
from thankcast.application.delivery_trigger import DeliveryTrigger
from thankcast.infrastructure.capability_prober import default_prober
from thankcast.infrastructure.delivery_gateway import LogOnlyDeliveryGateway, SupabaseFunctionDeliveryGateway
from thankcast.infrastructure.ffmpeg_engine import FFmpegEngine
from thankcast.infrastructure.repositories.in_memory_compositing_job_repository import InMemoryCompositingJobRepository
from thankcast.infrastructure.repositories.supabase_compositing_job_repository import SupabaseCompositingJobRepository
from thankcast.infrastructure.storage_service import LocalObjectStorage, SupabaseObjectStorage

logger = logging.getLogger(__name__)


def is_local() -> bool:
    return ENV == "local"


# Process-wide singletons so the API, the background tasks and the CLI
# share one store in local mode.
@lru_cache(maxsize=1)
def get_job_repository():
    if is_local():
        logger.info("🗂️ Using in-memory job store (ENV=local)")
        return InMemoryCompositingJobRepository()
    return SupabaseCompositingJobRepository()


@lru_cache(maxsize=1)
def get_object_storage():
    if is_local():
        logger.info(f"🗂️ Using local object storage at {LOCAL_STORAGE_DIR}")
        return LocalObjectStorage(LOCAL_STORAGE_DIR)
    return SupabaseObjectStorage()


@lru_cache(maxsize=1)
def get_delivery_gateway():
    if is_local():
        return LogOnlyDeliveryGateway()
    return SupabaseFunctionDeliveryGateway()


@lru_cache(maxsize=1)
def get_engine() -> FFmpegEngine:
    return FFmpegEngine()


def get_worker() -> CompositingWorker:
    return CompositingWorker(
        repository=get_job_repository(),
        storage=get_object_storage(),
        engine=get_engine(),
        prober=default_prober(),
        delivery_trigger=DeliveryTrigger(get_delivery_gateway()),
    )
