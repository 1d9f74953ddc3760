"""
Models for filesender module.

Immutable dataclasses following Single Responsibility Principle.
"""
import mimetypes
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from .protocols import IByteSource

if TYPE_CHECKING:
    from .utils.cancellation import CancellationToken


class Strategy(Enum):
    """Wire-encoding path chosen for a file."""
    AUDIO = "audio"        # multipart -> endpoints.audio
    DOCUMENT = "document"  # multipart -> endpoints.doc
    IMAGE = "image"        # base64 JSON -> endpoints.doc

    @property
    def is_multipart(self) -> bool:
        return self is not Strategy.IMAGE


class ErrorKind(Enum):
    """Failure taxonomy of a transfer."""
    NETWORK = "network"
    HTTP_STATUS = "httpStatus"
    ABORTED = "aborted"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True, eq=False)
class FileDescriptor:
    """
    Immutable description of a file to transfer.

    Compared by identity: a metadata entry aliases the file only when it
    holds this very object.
    """
    name: str
    size_bytes: int
    mime_type: str
    source: IByteSource

    @classmethod
    def from_path(cls, path: Path, mime_type: Optional[str] = None) -> "FileDescriptor":
        from .services.sources import PathSource

        path = Path(path)
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or ""
        return cls(
            name=path.name,
            size_bytes=path.stat().st_size,
            mime_type=mime_type,
            source=PathSource(path),
        )

    @classmethod
    def from_bytes(cls, name: str, data: bytes, mime_type: str = "") -> "FileDescriptor":
        from .services.sources import BytesSource

        return cls(
            name=name,
            size_bytes=len(data),
            mime_type=mime_type,
            source=BytesSource(data),
        )


@dataclass(frozen=True)
class Endpoints:
    """The two logical destinations of a transfer."""
    audio: str
    doc: str

    def for_strategy(self, strategy: Strategy) -> str:
        if strategy is Strategy.AUDIO:
            return self.audio
        return self.doc


@dataclass(frozen=True)
class TransferOptions:
    """Per-call options for TransferCoordinator.send_file."""
    endpoints: Endpoints
    meta: Dict[str, Any] = field(default_factory=dict)
    on_progress: Optional[Callable[[int], None]] = None
    cancellation: Optional["CancellationToken"] = None
    force_base64: bool = False


@dataclass(frozen=True)
class ErrorInfo:
    """Structured failure carried by a TransferResult."""
    kind: ErrorKind
    message: str = ""
    status: Optional[int] = None
    body: Any = None


@dataclass(frozen=True)
class TransferResult:
    """Immutable result of one send_file call."""
    ok: bool
    http_status: Optional[int] = None
    response_body: Any = None
    file_ref: Optional[str] = None
    error: Optional[ErrorInfo] = None

    @property
    def aborted(self) -> bool:
        return self.error is not None and self.error.kind is ErrorKind.ABORTED

    @classmethod
    def success(cls, http_status: int, response_body: Any, file_ref: Optional[str]):
        return cls(
            ok=True,
            http_status=http_status,
            response_body=response_body,
            file_ref=file_ref,
        )

    @classmethod
    def fail(cls, error: ErrorInfo):
        return cls(
            ok=False,
            http_status=error.status,
            response_body=error.body,
            error=error,
        )


DEFAULT_CREDENTIAL_KEYS: Tuple[str, ...] = ("access_token", "token", "auth_token", "authToken")


@dataclass(frozen=True)
class TransferConfig:
    """Immutable configuration for the shared client and credential lookup."""
    base_url: str = ""
    timeout: float = 30.0
    credentials_file: Optional[Path] = None
    credential_keys: Tuple[str, ...] = DEFAULT_CREDENTIAL_KEYS
    interceptor_token_key: str = "auth_token"

    @classmethod
    def from_env(cls) -> "TransferConfig":
        """Build config from FILESENDER_* environment variables."""
        timeout = os.getenv("FILESENDER_TIMEOUT")
        credentials_file = os.getenv("FILESENDER_CREDENTIALS_FILE")
        return cls(
            base_url=os.getenv("FILESENDER_BASE_URL", ""),
            timeout=float(timeout) if timeout else 30.0,
            credentials_file=Path(credentials_file).expanduser() if credentials_file else None,
        )
