"""Tests for the multipart transport."""
import asyncio

import httpx
import pytest

from filesender.errors import UploadAborted, UploadHTTPError, UploadNetworkError
from filesender.models import ErrorKind
from filesender.services.api_client import HTTPAPIClient
from filesender.services.credentials import MemoryTokenStore, StaticCredentialProvider
from filesender.services.endpoints import StaticBaseURL
from filesender.services.multipart import MultipartUploader, ProgressReporter, ProgressStream
from filesender.utils.cancellation import CancellationToken

BASE_URL = "https://api.example.com/api"


class _ChunkStream(httpx.AsyncByteStream):
    def __init__(self, chunks):
        self._chunks = chunks

    async def __aiter__(self):
        for chunk in self._chunks:
            yield chunk


class TestProgress:
    def test_reporter_rounds_percentages(self):
        seen = []
        reporter = ProgressReporter(seen.append)
        for loaded in (10, 55, 100):
            reporter.report(loaded, 100)
        reporter.report(1, 3)
        assert seen == [10, 55, 100, 33]

    def test_reporter_skips_repeated_percentages(self):
        seen = []
        reporter = ProgressReporter(seen.append)
        for loaded in (0, 1, 220, 440, 999, 1000, 1000):
            reporter.report(loaded, 1000)
        assert seen == [0, 22, 44, 100]

    def test_reporter_skips_unknown_total(self):
        seen = []
        ProgressReporter(seen.append).report(10, 0)
        assert seen == []

    def test_reporter_survives_failing_callback(self):
        def boom(percent):
            raise RuntimeError("ui gone")

        ProgressReporter(boom).report(1, 2)

    @pytest.mark.asyncio
    async def test_stream_reports_in_order(self):
        seen = []
        stream = ProgressStream(
            _ChunkStream([b"a" * 10, b"b" * 45, b"c" * 45]),
            100,
            ProgressReporter(seen.append),
        )
        body = b"".join([chunk async for chunk in stream])
        assert len(body) == 100
        assert seen == [10, 55, 100]


class TestMultipartUploader:
    def _uploader(self, api, credentials=None, base_url=BASE_URL):
        return MultipartUploader(
            api,
            credentials=credentials if credentials is not None else api,
            base_url=StaticBaseURL(base_url),
        )

    @pytest.mark.asyncio
    async def test_wire_format(self, recorder, pdf_file):
        handler = recorder(json={"letter_document": "/media/report.pdf"})
        async with HTTPAPIClient(transport=handler.transport) as api:
            body = await self._uploader(api).upload_file(
                pdf_file,
                url="/d/",
                field_name="letter_document",
                extra_data={"subject": "hello", "skipped": None},
            )

        assert body == {"letter_document": "/media/report.pdf"}
        request = handler.last
        assert request.method == "POST"
        assert str(request.url) == f"{BASE_URL}/d/"
        assert request.headers["Content-Type"].startswith("multipart/form-data; boundary=")
        assert request.headers["Accept"] == "application/json"
        assert b'name="letter_document"; filename="report.pdf"' in request.content
        assert b"%PDF-1.4 fake" in request.content
        assert b'name="subject"\r\n\r\nhello' in request.content
        assert b'name="skipped"' not in request.content

    @pytest.mark.asyncio
    async def test_absolute_url_not_rebased(self, recorder, pdf_file):
        handler = recorder(json={})
        async with HTTPAPIClient(transport=handler.transport) as api:
            await self._uploader(api).upload_file(pdf_file, url="https://files.example.com/up/")
        assert str(handler.last.url) == "https://files.example.com/up/"

    @pytest.mark.asyncio
    async def test_explicit_content_type_is_stripped(self, recorder, pdf_file):
        handler = recorder(json={})
        async with HTTPAPIClient(transport=handler.transport) as api:
            await self._uploader(api, credentials=StaticCredentialProvider()).upload_file(
                pdf_file,
                url="/d/",
                headers={"Content-Type": "application/json", "Accept": "text/plain", "X-Trace": "t1"},
            )
        request = handler.last
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert request.headers["Accept"] == "text/plain"
        assert request.headers["X-Trace"] == "t1"

    @pytest.mark.asyncio
    async def test_shared_json_content_type_is_stripped(self, recorder, pdf_file):
        handler = recorder(json={})
        async with HTTPAPIClient(transport=handler.transport) as api:
            assert api.shared_headers()["content-type"] == "application/json"
            await self._uploader(api).upload_file(pdf_file, url="/d/")
        assert handler.last.headers["Content-Type"].startswith("multipart/form-data")

    @pytest.mark.asyncio
    async def test_stored_token_fallback(self, recorder, pdf_file):
        handler = recorder(json={})
        store = MemoryTokenStore({"token": "abc"})
        async with HTTPAPIClient(token_store=store, transport=handler.transport) as api:
            await self._uploader(api).upload_file(pdf_file, url="/d/")
        assert handler.last.headers["Authorization"] == "Bearer abc"

    @pytest.mark.asyncio
    async def test_progress_reaches_100_before_result(self, recorder, pdf_file):
        events = []
        handler = recorder(json={"id": 1})
        async with HTTPAPIClient(transport=handler.transport) as api:
            await self._uploader(api).upload_file(pdf_file, url="/d/", on_progress=events.append)
            events.append("done")

        percents = events[:-1]
        assert events[-1] == "done"
        assert percents, "expected progress callbacks"
        assert percents == sorted(percents)
        assert percents[-1] == 100

    @pytest.mark.asyncio
    async def test_text_body_kept_raw(self, recorder, pdf_file):
        handler = recorder(text="stored-ok")
        async with HTTPAPIClient(transport=handler.transport) as api:
            assert await self._uploader(api).upload_file(pdf_file, url="/d/") == "stored-ok"

    @pytest.mark.asyncio
    async def test_http_error(self, recorder, pdf_file):
        handler = recorder(status=400, json={"letter_document": ["required"]})
        async with HTTPAPIClient(transport=handler.transport) as api:
            with pytest.raises(UploadHTTPError) as exc_info:
                await self._uploader(api).upload_file(pdf_file, url="/d/")
        assert exc_info.value.status == 400
        assert exc_info.value.data == {"letter_document": ["required"]}
        assert exc_info.value.kind is ErrorKind.HTTP_STATUS

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exc", [
        httpx.ConnectError("refused"),
        httpx.ReadTimeout("slow"),
    ])
    async def test_network_error(self, pdf_file, exc):
        def handler(request):
            raise exc

        async with HTTPAPIClient(transport=httpx.MockTransport(handler)) as api:
            with pytest.raises(UploadNetworkError):
                await self._uploader(api).upload_file(pdf_file, url="/d/")

    @pytest.mark.asyncio
    async def test_pre_cancelled_sends_nothing(self, recorder, pdf_file):
        handler = recorder(json={})
        token = CancellationToken()
        token.cancel()
        async with HTTPAPIClient(transport=handler.transport) as api:
            with pytest.raises(UploadAborted):
                await self._uploader(api).upload_file(pdf_file, url="/d/", cancellation=token)
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_cancel_in_flight(self, pdf_file):
        started = asyncio.Event()

        async def handler(request):
            started.set()
            await asyncio.sleep(10)
            return httpx.Response(200, json={})

        token = CancellationToken()
        async with HTTPAPIClient(transport=httpx.MockTransport(handler)) as api:
            task = asyncio.ensure_future(
                self._uploader(api).upload_file(pdf_file, url="/d/", cancellation=token)
            )
            await started.wait()
            token.cancel()
            with pytest.raises(UploadAborted):
                await task
        assert token.listener_count == 0

    @pytest.mark.asyncio
    async def test_send_resolves_field_and_extras(self, recorder, pdf_file):
        handler = recorder(json={"id": 3})
        meta = {"attachment": pdf_file, "count": 2, "tags": ["a", "b"], "flag": True, "none": None}
        async with HTTPAPIClient(transport=handler.transport) as api:
            result = await self._uploader(api).send(pdf_file, "/d/", meta, "letter_document")

        assert result.ok is True
        assert result.http_status == 200
        content = handler.last.content
        assert b'name="attachment"; filename="report.pdf"' in content
        assert b'name="letter_document"' not in content
        assert content.count(b'name="attachment"') == 1
        assert b'name="count"\r\n\r\n2' in content
        assert b'name="tags"\r\n\r\n["a", "b"]' in content
        assert b'name="flag"\r\n\r\ntrue' in content
        assert b'name="none"' not in content

    @pytest.mark.asyncio
    async def test_send_skips_repeated_file_alias(self, recorder, pdf_file):
        handler = recorder(json={"id": 4})
        meta = {"attachment": pdf_file, "again": pdf_file, "subject": "hi"}
        async with HTTPAPIClient(transport=handler.transport) as api:
            result = await self._uploader(api).send(pdf_file, "/d/", meta, "letter_document")

        assert result.ok is True
        content = handler.last.content
        assert b'name="attachment"; filename="report.pdf"' in content
        assert b'name="again"' not in content
        assert b'name="subject"\r\n\r\nhi' in content

    @pytest.mark.asyncio
    async def test_send_converts_errors(self, recorder, pdf_file):
        handler = recorder(status=500, text="boom")
        async with HTTPAPIClient(transport=handler.transport) as api:
            result = await self._uploader(api).send(pdf_file, "/d/", {}, "letter_document")
        assert result.ok is False
        assert result.error.kind is ErrorKind.HTTP_STATUS
        assert result.http_status == 500
        assert result.response_body == "boom"
