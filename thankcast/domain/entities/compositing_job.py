import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import TypeAdapter

from thankcast.domain.errors import JobValidationError, IllegalTransition


class JobStatus(str, Enum):
    PENDING = 'pending'
    PROCESSING = 'processing'
    COMPLETED = 'completed'
    FAILED = 'failed'
    SENT = 'sent'


class TextPosition(str, Enum):
    TOP = 'top'
    CENTER = 'center'
    BOTTOM = 'bottom'


class SendMethod(str, Enum):
    EMAIL = 'email'
    SHARE = 'share'
    NONE = 'none'


# processing -> processing restarts an interrupted run,
# failed -> processing is the bounded retry of the same invocation.
ALLOWED_TRANSITIONS = {
    JobStatus.PENDING: {JobStatus.PROCESSING, JobStatus.FAILED},
    JobStatus.PROCESSING: {JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: {JobStatus.SENT},
    JobStatus.FAILED: {JobStatus.PROCESSING},
    JobStatus.SENT: set(),
}

TERMINAL_STATUSES = {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.SENT}
SUCCESS_STATUSES = {JobStatus.COMPLETED, JobStatus.SENT}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _pick(data: dict, *keys, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class Sticker:
    symbol: str
    x_percent: float
    y_percent: float
    scale: float = 1.0
    png_file: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Sticker":
        position = data.get("position") or {}
        return cls(
            symbol=_pick(data, "symbol", "emoji", "sticker", default="⭐"),
            x_percent=float(_pick(data, "x_percent", "xPercent", "x", default=position.get("x", 50))),
            y_percent=float(_pick(data, "y_percent", "yPercent", "y", default=position.get("y", 50))),
            scale=float(_pick(data, "scale", default=1.0)),
            png_file=_pick(data, "png_file", "pngFile"),
        )

    def to_dict(self) -> dict:
        return {
            "symbol": self.symbol,
            "x_percent": self.x_percent,
            "y_percent": self.y_percent,
            "scale": self.scale,
            "png_file": self.png_file,
        }


@dataclass
class CompositingJob:
    video_path: str
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    # Decoration
    frame_png_path: Optional[str] = None
    frame_shape: Optional[str] = None
    primary_color: str = "#06B6D4"
    border_width: int = 20
    custom_text: Optional[str] = None
    custom_text_position: TextPosition = TextPosition.BOTTOM
    custom_text_color: str = "#FFFFFF"
    stickers: list[Sticker] = field(default_factory=list)
    filter_id: Optional[str] = None

    # Routing only
    owner_id: Optional[str] = None
    video_record_id: Optional[str] = None
    gift_id: Optional[str] = None

    # Delivery
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    send_method: SendMethod = SendMethod.NONE
    email_subject: Optional[str] = None
    email_body: Optional[str] = None
    child_name: Optional[str] = None
    gift_name: Optional[str] = None
    event_name: Optional[str] = None

    status: JobStatus = JobStatus.PENDING
    output_path: Optional[str] = None
    error_message: Optional[str] = None

    created_at: datetime = field(default_factory=utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def wants_email_delivery(self) -> bool:
        return bool(self.recipient_email) and self.send_method == SendMethod.EMAIL

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CompositingJob":
        """
        Builds a job from a persisted row (snake_case) or a task payload (camelCase).
        Unknown enum values raise JobValidationError.
        """
        try:
            position = TextPosition(_pick(data, "custom_text_position", "customTextPosition", default="bottom"))
            send_method = SendMethod(_pick(data, "send_method", "sendMethod", default="none"))
            status = JobStatus(_pick(data, "status", default="pending"))
        except ValueError as e:
            raise JobValidationError(str(e)) from e

        stickers = [s if isinstance(s, Sticker) else Sticker.from_dict(s) for s in (data.get("stickers") or [])]

        job = cls(
            video_path=_pick(data, "video_path", "videoPath", default=""),
            frame_png_path=_pick(data, "frame_png_path", "framePngPath"),
            frame_shape=_pick(data, "frame_shape", "frameShape"),
            primary_color=_pick(data, "primary_color", "primaryColor", default="#06B6D4"),
            border_width=int(_pick(data, "border_width", "borderWidth", default=20)),
            custom_text=_pick(data, "custom_text", "customText"),
            custom_text_position=position,
            custom_text_color=_pick(data, "custom_text_color", "customTextColor", default="#FFFFFF"),
            stickers=stickers,
            filter_id=_pick(data, "filter_id", "filterId"),
            owner_id=_pick(data, "owner_id", "ownerId", "parent_id"),
            video_record_id=_pick(data, "video_record_id", "videoRecordId", "video_id"),
            gift_id=_pick(data, "gift_id", "giftId"),
            recipient_email=_pick(data, "recipient_email", "recipientEmail"),
            recipient_name=_pick(data, "recipient_name", "recipientName"),
            send_method=send_method,
            email_subject=_pick(data, "email_subject", "emailSubject"),
            email_body=_pick(data, "email_body", "emailBody"),
            child_name=_pick(data, "child_name", "childName"),
            gift_name=_pick(data, "gift_name", "giftName"),
            event_name=_pick(data, "event_name", "eventName"),
            status=status,
            output_path=_pick(data, "output_path", "outputPath"),
            error_message=_pick(data, "error_message", "errorMessage"),
            created_at=_parse_ts(_pick(data, "created_at", "createdAt")) or utcnow(),
            started_at=_parse_ts(_pick(data, "started_at", "startedAt")),
            completed_at=_parse_ts(_pick(data, "completed_at", "completedAt")),
        )
        job_id = _pick(data, "id", "jobId")
        if job_id:
            job.id = str(job_id)
        return job


_TIMESTAMP = TypeAdapter(datetime)


def _parse_ts(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    # PostgREST trims trailing zeros from the fraction and may use a trailing 'Z'
    return _TIMESTAMP.validate_python(value)


def validate_new_job(job: CompositingJob) -> None:
    """Rejects a job that cannot be rendered or delivered as described."""
    if not job.video_path or not job.video_path.strip():
        raise JobValidationError("video_path is required")
    if job.status != JobStatus.PENDING:
        raise JobValidationError(f"New jobs must start as 'pending', got '{job.status.value}'")
    if job.output_path or job.error_message:
        raise JobValidationError("New jobs cannot carry an output_path or error_message")
    if job.send_method == SendMethod.EMAIL and not job.recipient_email:
        raise JobValidationError("send_method 'email' requires recipient_email")
    if job.border_width < 0:
        raise JobValidationError("border_width must not be negative")
    for i, sticker in enumerate(job.stickers):
        if not (0 <= sticker.x_percent <= 100 and 0 <= sticker.y_percent <= 100):
            raise JobValidationError(f"Sticker {i} position must be within 0..100 percent")
        if sticker.scale <= 0:
            raise JobValidationError(f"Sticker {i} scale must be positive")


def can_transition(current: JobStatus, requested: JobStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS[current]


def transition_changes(
    job: CompositingJob,
    new_status: JobStatus,
    output_path: Optional[str] = None,
    error_message: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    """
    Returns the field changes for moving `job` to `new_status`.
    Raises IllegalTransition for moves outside ALLOWED_TRANSITIONS.
    """
    if not can_transition(job.status, new_status):
        raise IllegalTransition(job.id, job.status.value, new_status.value)

    now = now or utcnow()
    changes: dict[str, Any] = {"status": new_status}

    if new_status == JobStatus.PROCESSING:
        changes.update(started_at=now, output_path=None, error_message=None, completed_at=None)
    elif new_status == JobStatus.COMPLETED:
        if not output_path:
            raise JobValidationError("Completing a job requires an output_path")
        changes.update(output_path=output_path, error_message=None, completed_at=now)
    elif new_status == JobStatus.FAILED:
        if not error_message:
            raise JobValidationError("Failing a job requires an error_message")
        changes.update(error_message=error_message, output_path=None, completed_at=now)
    elif new_status == JobStatus.SENT:
        if output_path:
            changes["output_path"] = output_path

    return changes
