import logging
import shutil
from pathlib import Path

from thankcast.domain.errors import StorageError
from thankcast.domain.repositories.object_storage import ObjectStorage
from thankcast.infrastructure.supabase_client import get_supabase

logger = logging.getLogger(__name__)


class SupabaseObjectStorage(ObjectStorage):
    def __init__(self, client=None):
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = get_supabase()
        return self._client

    def upload(self, bucket, key, data, content_type="application/octet-stream", upsert=False):
        """
        Uploads bytes to the bucket. With upsert the key is overwritten in place.
        """
        try:
            logger.info(f"📤 Uploading {len(data)} bytes to {bucket}/{key}...")
            self.client.storage.from_(bucket).upload(
                path=key,
                file=data,
                file_options={"content-type": content_type, "upsert": "true" if upsert else "false"},
            )
            logger.info("✅ File uploaded successfully.")
        except Exception as e:
            raise StorageError(f"Upload to {bucket}/{key} failed: {e}") from e

    def download(self, bucket, key):
        """
        Downloads an object from the bucket.
        """
        try:
            logger.info(f"📥 Downloading {bucket}/{key}...")
            data = self.client.storage.from_(bucket).download(key)
        except Exception as e:
            raise StorageError(f"Download of {bucket}/{key} failed: {e}") from e
        if not data:
            raise StorageError(f"Download of {bucket}/{key} returned no data")
        logger.info(f"✅ Downloaded {len(data)} bytes.")
        return data

    def create_signed_url(self, bucket, key, ttl_seconds):
        try:
            res = self.client.storage.from_(bucket).create_signed_url(key, ttl_seconds)
        except Exception as e:
            raise StorageError(f"Signing {bucket}/{key} failed: {e}") from e
        # storage3 has returned both spellings across releases
        url = (res or {}).get("signedURL") or (res or {}).get("signedUrl")
        if not url:
            raise StorageError(f"Signing {bucket}/{key} returned no URL")
        return url


class LocalObjectStorage(ObjectStorage):
    """
    Directory-backed buckets (<root>/<bucket>/<key>) for local runs.
    Signed URLs are file:// links; the TTL is only recorded in the query string.
    """

    def __init__(self, root):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, bucket, key) -> Path:
        path = (self.root / bucket / key).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(f"Key escapes the storage root: {bucket}/{key}")
        return path

    def upload(self, bucket, key, data, content_type="application/octet-stream", upsert=False):
        path = self._path(bucket, key)
        if path.exists() and not upsert:
            raise StorageError(f"{bucket}/{key} already exists")
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.info(f"📤 Stored {len(data)} bytes at {path}")

    def download(self, bucket, key):
        path = self._path(bucket, key)
        if not path.is_file():
            raise StorageError(f"Object not found: {bucket}/{key}")
        return path.read_bytes()

    def create_signed_url(self, bucket, key, ttl_seconds):
        path = self._path(bucket, key)
        if not path.is_file():
            raise StorageError(f"Object not found: {bucket}/{key}")
        return f"{path.as_uri()}?expires_in={int(ttl_seconds)}"

    def import_file(self, bucket, key, source_path):
        """Copies a file from disk into a bucket (used to seed local runs)."""
        path = self._path(bucket, key)
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source_path, path)
        return key
