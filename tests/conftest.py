from pathlib import Path

import pytest

from thankcast.application.compositing_worker import CompositingWorker
from thankcast.application.delivery_trigger import DeliveryTrigger
from thankcast.domain.entities.compositing_job import CompositingJob
from thankcast.domain.errors import DeliveryFailure, RenderExecutionFailure
from thankcast.infrastructure.capability_prober import StaticCapabilityProvider
from thankcast.infrastructure.delivery_gateway import DeliveryGateway
from thankcast.infrastructure.repositories.in_memory_compositing_job_repository import InMemoryCompositingJobRepository
from thankcast.infrastructure.storage_service import LocalObjectStorage


SOURCE_KEY = "parent-1/gift-opening.mp4"


class FakeEngine:
    """Stands in for FFmpegEngine: records every invocation and writes a fake output file."""

    def __init__(self, fail=False, fail_when=None, leave_output=False, size=(1080, 1920)):
        self.calls = []
        self.fail = fail
        self.fail_when = fail_when
        self.leave_output = leave_output
        self.size = size

    def transcode(self, args):
        args = [str(a) for a in args]
        self.calls.append(args)
        output = Path(args[-1])
        joined = " ".join(args)
        if self.fail or (self.fail_when and self.fail_when in joined):
            if self.leave_output:
                output.write_bytes(b"partial-render")
            raise RenderExecutionFailure("ffmpeg exited with status 1", stderr="Error initializing complex filters")
        output.write_bytes(b"rendered-video")
        return "", ""

    def get_video_size(self, path, default=(1080, 1920)):
        return self.size


class RecordingGateway(DeliveryGateway):
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def send(self, payload):
        if self.fail:
            raise DeliveryFailure("send-video-email returned 500")
        self.sent.append(payload)


@pytest.fixture
def repo():
    return InMemoryCompositingJobRepository()


@pytest.fixture
def storage(tmp_path):
    store = LocalObjectStorage(tmp_path / "storage")
    store.upload("videos", SOURCE_KEY, b"source-video")
    return store


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def gateway():
    return RecordingGateway()


@pytest.fixture
def workspace_dir(tmp_path):
    return tmp_path / "work"


@pytest.fixture
def make_worker(repo, storage, engine, gateway, workspace_dir):
    def _make(available=True, engine_override=None, gateway_override=None):
        return CompositingWorker(
            repository=repo,
            storage=storage,
            engine=engine_override or engine,
            prober=StaticCapabilityProvider(available),
            delivery_trigger=DeliveryTrigger(gateway_override or gateway),
            workspace_dir=workspace_dir,
        )
    return _make


@pytest.fixture
def make_job(repo):
    """Creates and persists a pending job; keyword arguments override the defaults."""
    def _make(**overrides):
        data = {
            "video_path": f"videos/{SOURCE_KEY}",
            "owner_id": "parent-1",
            "video_record_id": "video-1",
            **overrides,
        }
        job = CompositingJob.from_dict(data)
        repo.create(job)
        return job
    return _make
