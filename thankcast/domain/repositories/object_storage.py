from abc import ABC, abstractmethod

class ObjectStorage(ABC):
    """Bucket/key blob store. Implementations raise StorageError on failure."""

    @abstractmethod
    def download(self, bucket: str, key: str) -> bytes:
        pass

    @abstractmethod
    def upload(self, bucket: str, key: str, data: bytes, content_type: str = "application/octet-stream", upsert: bool = False) -> None:
        pass

    @abstractmethod
    def create_signed_url(self, bucket: str, key: str, ttl_seconds: int) -> str:
        pass
