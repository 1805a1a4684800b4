import os
from pathlib import Path
from dotenv import load_dotenv

# This points to the repository root
BASE_DIR = Path(__file__).resolve().parent.parent

# PROJECT_ROOT for easy reference throughout the app
PROJECT_ROOT = Path(os.getenv("PROJECT_ROOT", str(BASE_DIR)))
load_dotenv(PROJECT_ROOT / ".env", override=False)

ENV = os.getenv("ENV", "local").lower()

# Common paths using pathlib
TEMP_DIR = Path(os.getenv("TEMP_DIR", str(PROJECT_ROOT / "tmp")))
LOCAL_STORAGE_DIR = Path(os.getenv("LOCAL_STORAGE_DIR", str(PROJECT_ROOT / "storage")))
COMPOSITED_CACHE_DIR = TEMP_DIR / "composited_videos"

# Ensure critical directories exist
TEMP_DIR.mkdir(parents=True, exist_ok=True)

# Supabase
SUPABASE_URL = os.getenv("SUPABASE_URL") or os.getenv("NEXT_PUBLIC_SUPABASE_URL")
SUPABASE_KEY = (
    os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    or os.getenv("SUPABASE_ANON_KEY")
    or os.getenv("NEXT_PUBLIC_SUPABASE_ANON_KEY")
)
JOBS_TABLE = os.getenv("JOBS_TABLE", "video_compositing_jobs")
DELIVERY_FUNCTION = os.getenv("DELIVERY_FUNCTION", "send-video-email")

# Storage buckets
VIDEO_BUCKET = os.getenv("VIDEO_BUCKET", "videos")
FRAME_BUCKET = os.getenv("FRAME_BUCKET", "ai-frames")
STICKER_BUCKET = os.getenv("STICKER_BUCKET", "stickers")
OUTPUT_PREFIX = os.getenv("OUTPUT_PREFIX", "composited")

# Signed URL lifetimes (seconds)
SIGNED_URL_TTL_INTERNAL = int(os.getenv("SIGNED_URL_TTL_INTERNAL", str(60 * 60)))
SIGNED_URL_TTL_DELIVERY = int(os.getenv("SIGNED_URL_TTL_DELIVERY", str(60 * 60 * 24 * 7)))

# Render canvas
CANVAS_WIDTH = int(os.getenv("CANVAS_WIDTH", "1080"))
CANVAS_HEIGHT = int(os.getenv("CANVAS_HEIGHT", "1920"))

# FFmpeg
FFMPEG_BIN = os.getenv("FFMPEG_BIN", "ffmpeg")
FFPROBE_BIN = os.getenv("FFPROBE_BIN", "ffprobe")
FFMPEG_LOGLEVEL = os.getenv("FFMPEG_LOGLEVEL", "error")
FFMPEG_ENABLED = os.getenv("FFMPEG_ENABLED", "true").lower() not in ("0", "false", "no")

# Worker retry policy
WORKER_MAX_ATTEMPTS = int(os.getenv("WORKER_MAX_ATTEMPTS", "3"))
WORKER_RETRY_DELAY = float(os.getenv("WORKER_RETRY_DELAY", "2.0"))

# Client poller
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "3.0"))
POLL_TIMEOUT_SECONDS = float(os.getenv("POLL_TIMEOUT_SECONDS", "300.0"))

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",") if o.strip()]

# Shared secret expected in the X-Webhook-Secret header of database webhooks (empty = not checked)
WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET", "")
