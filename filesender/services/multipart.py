"""
Multipart Transport - streams a file plus string fields as multipart/form-data.

Requests are built directly rather than through the shared client so its
JSON Content-Type never reaches the wire; credentials and base URL are
therefore resolved here.
"""
from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Callable, Dict, Mapping, NamedTuple, Optional, Sequence

import httpx

from ..errors import UploadError, UploadHTTPError
from ..models import DEFAULT_CREDENTIAL_KEYS, FileDescriptor, TransferResult
from ..protocols import IAPIClient, IBaseURLProvider, ICredentialProvider
from ..utils.cancellation import CancellationToken
from .credentials import resolve_headers
from .endpoints import resolve_url
from .metadata import find_file_key, stringify_extras
from .response import parse_body

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


class UploadResponse(NamedTuple):
    status: int
    body: Any


class ProgressReporter:
    """Turns loaded/total byte counts into rounded percentages."""

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self._last: Optional[int] = None

    def report(self, loaded: int, total: int) -> None:
        if self._callback is None or total <= 0:
            return
        percent = int(loaded * 100 / total + 0.5)
        if percent == self._last:
            return
        self._last = percent
        try:
            self._callback(percent)
        except Exception as e:
            logger.error(f"Error in progress callback: {e}")


class ProgressStream(httpx.AsyncByteStream):
    """Request body wrapper reporting progress as chunks are consumed."""

    def __init__(self, stream: httpx.AsyncByteStream, total: int, reporter: ProgressReporter):
        self._stream = stream
        self._total = total
        self._reporter = reporter

    async def __aiter__(self) -> AsyncIterator[bytes]:
        loaded = 0
        async for chunk in self._stream:
            yield chunk
            loaded += len(chunk)
            self._reporter.report(loaded, self._total)

    async def aclose(self) -> None:
        await self._stream.aclose()


class MultipartUploader:
    """
    Uploads files as multipart/form-data with progress and cancellation.

    Usage:
        uploader = MultipartUploader(api_client)
        data = await uploader.upload_file(file, url="/uploads/", field_name="file")
    """

    def __init__(
        self,
        api_client: IAPIClient,
        credentials: Optional[ICredentialProvider] = None,
        base_url: Optional[IBaseURLProvider] = None,
        credential_keys: Sequence[str] = DEFAULT_CREDENTIAL_KEYS,
    ):
        self._api_client = api_client
        self._credentials = credentials
        self._base_url = base_url
        self._credential_keys = credential_keys

    def build_headers(self, explicit: Optional[Mapping[str, str]] = None) -> httpx.Headers:
        headers = resolve_headers(explicit, self._credentials, self._credential_keys)
        # Boundary must be set by the encoder
        if "Content-Type" in headers:
            del headers["Content-Type"]
        if "Accept" not in headers:
            headers["Accept"] = "application/json"
        return headers

    def build_url(self, url: str) -> str:
        configured = self._base_url.base_url() if self._base_url is not None else ""
        return resolve_url(url, configured)

    async def upload(
        self,
        file: FileDescriptor,
        url: str = "/uploads/",
        field_name: str = "file",
        extra_data: Optional[Mapping[str, Any]] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancellation: Optional[CancellationToken] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> UploadResponse:
        """
        Upload and return status plus parsed body.

        Raises:
            UploadAborted: token fired before or during the upload
            UploadHTTPError: non-2xx response (status and parsed body attached)
            UploadNetworkError: no response received
        """
        if cancellation is not None:
            cancellation.raise_if_cancelled()

        fields: Dict[str, str] = {
            key: str(value) for key, value in (extra_data or {}).items() if value is not None
        }
        outgoing = self.build_headers(headers)
        full_url = self.build_url(url)
        logger.debug(f"Multipart upload {file.name} -> {full_url} field={field_name} fields={list(fields)}")
        logger.debug(f"Outgoing headers: {list(outgoing.keys())}")

        with file.source.open() as stream:
            request = httpx.Request(
                "POST",
                full_url,
                headers=outgoing,
                data=fields,
                files={field_name: (file.name, stream, file.mime_type or "application/octet-stream")},
            )
            total = int(request.headers.get("Content-Length") or 0)
            request.stream = ProgressStream(request.stream, total, ProgressReporter(on_progress))
            response = await self._api_client.send(request, cancellation)

        body = parse_body(response)
        if not response.is_success:
            raise UploadHTTPError(response.status_code, body)
        return UploadResponse(response.status_code, body)

    async def upload_file(
        self,
        file: FileDescriptor,
        url: str = "/uploads/",
        field_name: str = "file",
        extra_data: Optional[Mapping[str, Any]] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancellation: Optional[CancellationToken] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Upload and return the parsed response body; raises UploadError subclasses."""
        response = await self.upload(
            file,
            url=url,
            field_name=field_name,
            extra_data=extra_data,
            on_progress=on_progress,
            cancellation=cancellation,
            headers=headers,
        )
        return response.body

    async def send(
        self,
        file: FileDescriptor,
        endpoint: str,
        meta: Mapping[str, Any],
        default_field: str,
        on_progress: Optional[ProgressCallback] = None,
        cancellation: Optional[CancellationToken] = None,
    ) -> TransferResult:
        """Upload with field-name resolution and metadata merging, as a TransferResult."""
        file_key = find_file_key(meta, file)
        field_name = file_key or default_field
        extra_data = stringify_extras(meta, file)

        try:
            response = await self.upload(
                file,
                url=endpoint,
                field_name=field_name,
                extra_data=extra_data,
                on_progress=on_progress,
                cancellation=cancellation,
            )
        except UploadError as e:
            logger.debug(f"Multipart upload error ({e.kind.value}) for {endpoint}: {e}")
            return TransferResult.fail(e.to_info())

        logger.debug(f"Multipart upload response {response.status} from {endpoint}")
        return TransferResult.success(response.status, response.body, None)
