from datetime import datetime
from pydantic import BaseModel, Field
from typing import Any, Optional

class StickerIn(BaseModel):
    symbol: str
    x_percent: float
    y_percent: float
    scale: float = 1.0
    png_file: Optional[str] = None

class CompositingJobRequest(BaseModel):
    video_path: str
    frame_png_path: Optional[str] = None
    frame_shape: Optional[str] = None
    primary_color: str = "#06B6D4"
    border_width: int = 20
    custom_text: Optional[str] = None
    custom_text_position: str = "bottom"
    custom_text_color: str = "#FFFFFF"
    stickers: list[StickerIn] = Field(default_factory=list)
    filter_id: Optional[str] = None
    video_record_id: Optional[str] = None
    gift_id: Optional[str] = None
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    send_method: str = "none"
    email_subject: Optional[str] = None
    email_body: Optional[str] = None
    child_name: Optional[str] = None
    gift_name: Optional[str] = None
    event_name: Optional[str] = None

class CompositingJobResponse(BaseModel):
    id: str
    status: str
    output_path: Optional[str] = None
    output_url: Optional[str] = None
    error_message: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

class WebhookPayload(BaseModel):
    """Database webhook body: {type, table, record, old_record}."""
    type: str
    table: Optional[str] = None
    record: Optional[dict[str, Any]] = None
    old_record: Optional[dict[str, Any]] = None
