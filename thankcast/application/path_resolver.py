import re
from urllib.parse import unquote

from thankcast.config import VIDEO_BUCKET, FRAME_BUCKET

STORAGE_HOST_MARKERS = ("/storage/v1/object", "supabase.co/storage")
PRESET_FRAME_PREFIX = "preset-frames/"


def resolve_storage_key(reference: str, bucket: str = VIDEO_BUCKET) -> str:
    """
    Normalizes a stored-object reference into a bucket-relative key.

    Accepted shapes:
      https://<host>/storage/v1/object/public/<bucket>/a/b.mp4  -> a/b.mp4
      https://<host>/storage/v1/object/sign/<bucket>/a/b.mp4?token=...  -> a/b.mp4
      <bucket>/a/b.mp4  -> a/b.mp4
      a/b.mp4  -> a/b.mp4

    The result is percent-decoded exactly once. No I/O.
    """
    ref = (reference or "").strip()
    key = ref
    marker = re.escape(bucket)

    if any(m in ref for m in STORAGE_HOST_MARKERS):
        without_query = ref.split("?", 1)[0]
        match = re.search(rf"/(?:public|authenticated|sign)/{marker}/(.+)$", without_query)
        if match:
            key = match.group(1)
        else:
            alt = re.search(rf"/{marker}/(.+)$", without_query)
            if alt:
                key = alt.group(1)
    elif ref.startswith(f"{bucket}/"):
        key = ref[len(bucket) + 1:]

    return unquote(key)


def frame_asset_locations(frame_png_path: str, frame_bucket: str = FRAME_BUCKET, video_bucket: str = VIDEO_BUCKET):
    """
    Ordered (bucket, key) candidates for a frame image.
    Preset frames only live in the frame bucket; anything else may also
    have been saved under the video bucket's ai-frames/ folder.
    """
    key = resolve_storage_key(frame_png_path, frame_bucket)
    if key.startswith(PRESET_FRAME_PREFIX):
        return [(frame_bucket, key)]
    return [(frame_bucket, key), (video_bucket, f"{frame_bucket}/{key}")]
