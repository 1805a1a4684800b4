from datetime import datetime, timezone

import pytest

from thankcast.domain.entities.compositing_job import (
    CompositingJob,
    JobStatus,
    SendMethod,
    Sticker,
    TextPosition,
    can_transition,
    transition_changes,
    validate_new_job,
)
from thankcast.domain.errors import IllegalTransition, JobValidationError


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_from_task_payload_uses_camel_case_keys():
    job = CompositingJob.from_dict({
        "jobId": "job-1",
        "videoPath": "videos/p/clip.mp4",
        "customText": "Thank you!",
        "customTextPosition": "top",
        "stickers": [{"emoji": "🎉", "x": 10, "y": 20, "scale": 1.5}],
        "recipientEmail": "grandma@example.com",
        "sendMethod": "email",
        "filterId": "warm",
    })

    assert job.id == "job-1"
    assert job.custom_text_position == TextPosition.TOP
    assert job.send_method == SendMethod.EMAIL
    assert job.stickers == [Sticker(symbol="🎉", x_percent=10.0, y_percent=20.0, scale=1.5)]
    assert job.wants_email_delivery


def test_from_row_maps_owner_columns_and_timestamps():
    job = CompositingJob.from_dict({
        "id": "job-2",
        "video_path": "p/clip.mp4",
        "parent_id": "parent-9",
        "video_id": "video-9",
        "status": "completed",
        "output_path": "composited/job-2.mp4",
        "created_at": "2026-01-05T10:00:00Z",
    })

    assert job.owner_id == "parent-9"
    assert job.video_record_id == "video-9"
    assert job.status == JobStatus.COMPLETED
    assert job.created_at == datetime(2026, 1, 5, 10, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "stamp, micros",
    [("2024-03-01T10:00:00.12345+00:00", 123450), ("2024-03-01T10:00:00.1+00:00", 100000)],
)
def test_timestamps_with_trimmed_fractions_parse(stamp, micros):
    job = CompositingJob.from_dict({"id": "job-3", "video_path": "a.mp4", "started_at": stamp})

    assert job.started_at.microsecond == micros
    assert job.started_at.utcoffset().total_seconds() == 0


def test_unknown_enum_value_is_a_validation_error():
    with pytest.raises(JobValidationError):
        CompositingJob.from_dict({"video_path": "a.mp4", "custom_text_position": "diagonal"})


def test_defaults():
    job = CompositingJob(video_path="a.mp4")
    assert job.status == JobStatus.PENDING
    assert job.custom_text_position == TextPosition.BOTTOM
    assert job.custom_text_color == "#FFFFFF"
    assert job.send_method == SendMethod.NONE
    assert not job.wants_email_delivery


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "overrides",
    [
        {"video_path": "  "},
        {"send_method": SendMethod.EMAIL},
        {"stickers": [Sticker("⭐", 120, 50)]},
        {"stickers": [Sticker("⭐", 50, -1)]},
        {"stickers": [Sticker("⭐", 50, 50, scale=0)]},
        {"status": JobStatus.PROCESSING},
        {"output_path": "composited/x.mp4"},
        {"border_width": -1},
    ],
)
def test_invalid_new_jobs_are_rejected(overrides):
    job = CompositingJob(**{"video_path": "a.mp4", **overrides})
    with pytest.raises(JobValidationError):
        validate_new_job(job)


def test_email_job_with_recipient_is_valid():
    validate_new_job(CompositingJob(video_path="a.mp4", send_method=SendMethod.EMAIL, recipient_email="a@b.c"))


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "current, requested",
    [
        (JobStatus.PENDING, JobStatus.PROCESSING),
        (JobStatus.PENDING, JobStatus.FAILED),
        (JobStatus.PROCESSING, JobStatus.COMPLETED),
        (JobStatus.PROCESSING, JobStatus.FAILED),
        (JobStatus.PROCESSING, JobStatus.PROCESSING),
        (JobStatus.FAILED, JobStatus.PROCESSING),
        (JobStatus.COMPLETED, JobStatus.SENT),
    ],
)
def test_legal_transitions(current, requested):
    assert can_transition(current, requested)


@pytest.mark.parametrize(
    "current, requested",
    [
        (JobStatus.COMPLETED, JobStatus.PENDING),
        (JobStatus.PROCESSING, JobStatus.PENDING),
        (JobStatus.PENDING, JobStatus.COMPLETED),
        (JobStatus.PROCESSING, JobStatus.SENT),
        (JobStatus.SENT, JobStatus.PROCESSING),
        (JobStatus.COMPLETED, JobStatus.FAILED),
    ],
)
def test_illegal_transitions_raise(current, requested):
    job = CompositingJob(video_path="a.mp4", status=current, output_path="x" if current == JobStatus.COMPLETED else None)
    assert not can_transition(current, requested)
    with pytest.raises(IllegalTransition):
        transition_changes(job, requested, output_path="composited/x.mp4", error_message="boom")


def test_processing_clears_previous_result():
    job = CompositingJob(video_path="a.mp4", status=JobStatus.FAILED, error_message="boom")
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    changes = transition_changes(job, JobStatus.PROCESSING, now=now)

    assert changes["started_at"] == now
    assert changes["error_message"] is None
    assert changes["output_path"] is None


def test_completed_requires_output_path():
    job = CompositingJob(video_path="a.mp4", status=JobStatus.PROCESSING)
    with pytest.raises(JobValidationError):
        transition_changes(job, JobStatus.COMPLETED)


def test_failed_requires_message_and_clears_output():
    job = CompositingJob(video_path="a.mp4", status=JobStatus.PROCESSING)
    with pytest.raises(JobValidationError):
        transition_changes(job, JobStatus.FAILED)

    changes = transition_changes(job, JobStatus.FAILED, error_message="download failed")
    assert changes["error_message"] == "download failed"
    assert changes["output_path"] is None
    assert changes["completed_at"] is not None


def test_sent_keeps_output_path():
    job = CompositingJob(video_path="a.mp4", status=JobStatus.COMPLETED, output_path="composited/a.mp4")
    changes = transition_changes(job, JobStatus.SENT)
    assert changes == {"status": JobStatus.SENT}
