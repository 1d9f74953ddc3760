"""
Base64 Transport - buffers a file, base64-encodes it into a JSON payload and
POSTs it through the shared client.

The whole file is held in memory; not meant for large files.
"""
import base64
import logging
from typing import Any, Dict, Mapping, NamedTuple, Optional

from ..errors import UploadAborted, UploadError
from ..models import FileDescriptor, TransferResult
from ..protocols import IAPIClient
from ..utils.cancellation import CancellationToken
from .metadata import resolve_field_name, without_file
from .response import parse_body

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


class EncodedFile(NamedTuple):
    base64: str
    filename: str
    mime_type: str


def strip_data_url(encoded: str) -> str:
    """Drop a `data:<mime>;base64,` prefix if present."""
    if encoded.startswith("data:"):
        comma = encoded.find(",")
        if comma >= 0:
            return encoded[comma + 1:]
    return encoded


async def read_as_base64(file: FileDescriptor) -> EncodedFile:
    data = await file.source.read_all()
    # Sources may hand back a data URL instead of raw bytes
    if isinstance(data, str):
        encoded = strip_data_url(data)
    else:
        encoded = base64.b64encode(data).decode("ascii")
    return EncodedFile(encoded, file.name, file.mime_type or DEFAULT_CONTENT_TYPE)


def build_payload(meta: Mapping[str, Any], field_name: str, encoded: EncodedFile) -> Dict[str, Any]:
    payload = dict(meta)
    payload[field_name] = {
        "filename": encoded.filename,
        "content_base64": encoded.base64,
        "content_type": encoded.mime_type,
    }
    return payload


class Base64Uploader:
    """Sends files as base64 JSON via the shared API client."""

    def __init__(self, api_client: IAPIClient):
        self._api_client = api_client

    async def send(
        self,
        file: FileDescriptor,
        endpoint: str,
        meta: Mapping[str, Any],
        default_field: str = "file",
        cancellation: Optional[CancellationToken] = None,
    ) -> TransferResult:
        if cancellation is not None and cancellation.cancelled:
            return TransferResult.fail(UploadAborted().to_info())

        field_name = resolve_field_name(meta, file, default_field)
        encoded = await read_as_base64(file)
        payload = build_payload(without_file(meta, file), field_name, encoded)
        logger.debug(f"Base64 JSON upload {file.name} -> {endpoint} field={field_name}")

        try:
            response = await self._api_client.post(endpoint, json=payload, cancellation=cancellation)
        except UploadError as e:
            logger.debug(f"Base64 JSON upload error ({e.kind.value}) for {endpoint}: {e}")
            return TransferResult.fail(e.to_info())

        logger.debug(f"Base64 JSON response {response.status_code} from {endpoint}")
        return TransferResult.success(response.status_code, parse_body(response), None)
