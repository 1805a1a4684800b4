from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from server import app
from thankcast.api.auth import get_current_user
from thankcast.api.v1.endpoints.composites import get_webhook_secret
from thankcast.domain.entities.compositing_job import CompositingJob, JobStatus
from thankcast.infrastructure.factory import get_job_repository, get_object_storage, get_worker

from conftest import SOURCE_KEY


@pytest.fixture
def client(repo, storage, make_worker):
    app.dependency_overrides[get_current_user] = lambda: SimpleNamespace(id="parent-1")
    app.dependency_overrides[get_job_repository] = lambda: repo
    app.dependency_overrides[get_object_storage] = lambda: storage
    app.dependency_overrides[get_worker] = lambda: make_worker()
    app.dependency_overrides[get_webhook_secret] = lambda: ""
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root(client):
    assert client.get("/").json()["status"] == "ok"


def test_submit_creates_job_and_runs_worker(client, repo, gateway):
    res = client.post("/api/v1/composites", json={
        "video_path": f"videos/{SOURCE_KEY}",
        "filter_id": "warm",
        "stickers": [{"symbol": "🎉", "x_percent": 30, "y_percent": 40}],
        "recipient_email": "grandma@example.com",
        "send_method": "email",
    })

    assert res.status_code == 202
    body = res.json()
    assert body["status"] == "pending"

    # background task has run by the time the response is returned
    stored = repo.get_by_id(body["id"])
    assert stored.owner_id == "parent-1"
    assert stored.status == JobStatus.SENT
    assert gateway.sent[0]["jobId"] == body["id"]


def test_submit_rejects_invalid_payload(client):
    res = client.post("/api/v1/composites", json={"video_path": "a.mp4", "send_method": "email"})
    assert res.status_code == 400
    assert "recipient_email" in res.json()["detail"]


def test_submit_rejects_unknown_position(client):
    res = client.post("/api/v1/composites", json={"video_path": "a.mp4", "custom_text_position": "diagonal"})
    assert res.status_code == 400


def test_get_job_with_signed_output_url(client, repo, storage):
    job = CompositingJob(video_path="a.mp4", owner_id="parent-1")
    repo.create(job)
    repo.transition(job.id, JobStatus.PROCESSING)
    storage.upload("videos", f"composited/{job.id}.mp4", b"out")
    repo.transition(job.id, JobStatus.COMPLETED, output_path=f"composited/{job.id}.mp4")

    res = client.get(f"/api/v1/composites/{job.id}")

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "completed"
    assert body["output_url"].endswith("expires_in=3600")


def test_get_job_of_another_owner_is_forbidden(client, repo):
    job = CompositingJob(video_path="a.mp4", owner_id="parent-2")
    repo.create(job)
    assert client.get(f"/api/v1/composites/{job.id}").status_code == 403


def test_get_unknown_job(client):
    assert client.get("/api/v1/composites/nope").status_code == 404


def test_list_active_jobs(client, repo):
    mine = CompositingJob(video_path="a.mp4", owner_id="parent-1")
    theirs = CompositingJob(video_path="b.mp4", owner_id="parent-2")
    repo.create(mine)
    repo.create(theirs)

    res = client.get("/api/v1/composites")

    assert res.status_code == 200
    assert [j["id"] for j in res.json()] == [mine.id]


def test_webhook_runs_inserted_pending_rows(client, repo):
    job = CompositingJob(video_path=f"videos/{SOURCE_KEY}", owner_id="parent-1")
    repo.create(job)
    record = {"id": job.id, "video_path": job.video_path, "parent_id": "parent-1", "status": "pending"}

    res = client.post("/api/v1/composites/webhook", json={"type": "INSERT", "table": "video_compositing_jobs", "record": record})

    assert res.json() == {"queued": True, "job_id": job.id}
    assert repo.get_by_id(job.id).status == JobStatus.COMPLETED


@pytest.mark.parametrize(
    "event_type, status",
    [("UPDATE", "pending"), ("INSERT", "processing")],
)
def test_webhook_ignores_other_events(client, event_type, status):
    res = client.post("/api/v1/composites/webhook", json={
        "type": event_type,
        "record": {"id": "job-1", "video_path": "a.mp4", "status": status},
    })
    assert res.status_code == 200
    assert res.json()["queued"] is False


def test_webhook_secret_is_checked(client):
    app.dependency_overrides[get_webhook_secret] = lambda: "s3cret"
    body = {"type": "INSERT", "record": {"id": "job-1", "video_path": "a.mp4", "status": "pending"}}

    assert client.post("/api/v1/composites/webhook", json=body).status_code == 401
    res = client.post("/api/v1/composites/webhook", json={"type": "UPDATE", "record": {}},
                      headers={"X-Webhook-Secret": "s3cret"})
    assert res.status_code == 200
