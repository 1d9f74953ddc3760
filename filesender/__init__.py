"""
Filesender - adaptive file transfer to a remote API.

Each file is classified and sent one of three ways:
- audio: multipart/form-data to the audio endpoint (field `recorded_call`)
- documents: multipart/form-data to the doc endpoint (field `letter_document`)
- images: base64 JSON to the doc endpoint (field `file`)

Usage:
    from filesender import TransferCoordinator, TransferOptions, Endpoints, FileDescriptor

    endpoints = Endpoints(audio="/calls/", doc="/letters/")
    file = FileDescriptor.from_path(path)

    async with TransferCoordinator(config=TransferConfig.from_env()) as sender:
        result = await sender.send_file(
            file,
            TransferOptions(endpoints=endpoints, meta={"letter_document": file, "subject": "x"}),
        )
        if result.ok:
            print(result.file_ref)
"""
from .coordinator import TransferCoordinator
from .errors import UploadAborted, UploadError, UploadHTTPError, UploadNetworkError
from .models import (
    Endpoints,
    ErrorInfo,
    ErrorKind,
    FileDescriptor,
    Strategy,
    TransferConfig,
    TransferOptions,
    TransferResult,
)
from .utils.cancellation import CancellationToken

__version__ = "0.1.0"
__all__ = [
    # Main
    "TransferCoordinator",
    "CancellationToken",
    # Models
    "Endpoints",
    "ErrorInfo",
    "ErrorKind",
    "FileDescriptor",
    "Strategy",
    "TransferConfig",
    "TransferOptions",
    "TransferResult",
    # Errors
    "UploadError",
    "UploadHTTPError",
    "UploadNetworkError",
    "UploadAborted",
]
