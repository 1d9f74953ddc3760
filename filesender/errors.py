"""Typed errors raised by the upload primitives."""
from typing import Any, Optional

from .models import ErrorInfo, ErrorKind


class UploadError(Exception):
    """Base class for upload failures."""

    kind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, status: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.status = status
        self.data = data

    def to_info(self) -> ErrorInfo:
        return ErrorInfo(kind=self.kind, message=str(self), status=self.status, body=self.data)


class UploadHTTPError(UploadError):
    """Terminal non-2xx response."""

    kind = ErrorKind.HTTP_STATUS

    def __init__(self, status: int, data: Any = None):
        super().__init__(f"Upload failed: HTTP {status}", status=status, data=data)


class UploadNetworkError(UploadError):
    """No response received (connection failure or timeout)."""

    kind = ErrorKind.NETWORK


class UploadAborted(UploadError):
    """Cancellation token fired before or during the transfer."""

    kind = ErrorKind.ABORTED

    def __init__(self, message: str = "Upload failed: aborted"):
        super().__init__(message)
