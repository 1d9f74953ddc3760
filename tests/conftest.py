"""Shared fixtures for filesender tests."""
import httpx
import pytest

from filesender.models import FileDescriptor


class Recorder:
    """MockTransport handler that records requests and returns a canned response."""

    def __init__(self, status=200, json=None, text=None):
        self.status = status
        self.json = json
        self.text = text
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status, text=self.text)
        return httpx.Response(self.status, json=self.json)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recorder():
    return Recorder


@pytest.fixture
def pdf_file():
    return FileDescriptor.from_bytes("report.pdf", b"%PDF-1.4 fake", "application/pdf")


@pytest.fixture
def mp3_file():
    return FileDescriptor.from_bytes("voice.mp3", b"ID3" + b"\x00" * 64, "audio/mpeg")


@pytest.fixture
def jpg_file():
    return FileDescriptor.from_bytes("photo.jpg", b"\xff\xd8\xff\xe0jpegdata", "image/jpeg")
