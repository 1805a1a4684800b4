class CompositingError(Exception):
    """Base class for failures raised by the compositing pipeline."""


class JobValidationError(CompositingError):
    pass


class JobNotFound(CompositingError):
    pass


class IllegalTransition(CompositingError):
    def __init__(self, job_id, current, requested):
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(f"Job {job_id}: cannot move from '{current}' to '{requested}'")


class ConcurrentJobUpdate(CompositingError):
    """The row changed between the read and the conditional update."""


class StorageError(CompositingError):
    pass


class AssetDownloadFailure(CompositingError):
    def __init__(self, bucket, key, reason):
        self.bucket = bucket
        self.key = key
        super().__init__(f"Failed to download '{key}' from bucket '{bucket}': {reason}")


class RenderExecutionFailure(CompositingError):
    def __init__(self, message, stderr=""):
        self.stderr = stderr or ""
        super().__init__(message)


class UploadFailure(CompositingError):
    pass


class DeliveryFailure(CompositingError):
    pass
