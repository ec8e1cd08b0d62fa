"""Error taxonomy shared by the file-sync layer, the job engine and the API."""

from typing import Optional


class StudioError(Exception):
    """Base class for all domain errors."""


class LocalFileMissing(StudioError):
    """A file that should be uploaded does not exist locally."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Local file not found: {path}")


class TransportError(StudioError):
    """Network or HTTP failure talking to a remote service."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class RemoteFileNotFound(StudioError):
    """Every download path variant was rejected by the file server."""

    def __init__(self, remote_path: str, last_error: Optional[Exception] = None):
        self.remote_path = remote_path
        self.last_error = last_error
        detail = f": {last_error}" if last_error else ""
        super().__init__(f"Remote file not found: {remote_path}{detail}")


class RecordNotFound(StudioError):
    """A job, model or voice record is missing from the store."""

    def __init__(self, kind: str, record_id):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} with ID {record_id} not found")


class RemoteJobFailure(StudioError):
    """A remote synthesis or speech service reported a terminal error code."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        super().__init__(message)


class JobAlreadyPending(StudioError):
    """A job that is already running remotely cannot be queued again."""

    def __init__(self, job_id: int):
        self.job_id = job_id
        super().__init__(f"Video {job_id} is already being synthesized")
