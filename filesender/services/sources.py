"""Byte sources backing a FileDescriptor."""
import asyncio
import io
from pathlib import Path
from typing import BinaryIO


class PathSource:
    """Content read from a file on disk."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def open(self) -> BinaryIO:
        return open(self.path, "rb")

    async def read_all(self) -> bytes:
        # Run in thread pool to avoid blocking the event loop
        return await asyncio.to_thread(self.path.read_bytes)

    def __repr__(self) -> str:
        return f"PathSource({str(self.path)!r})"


class BytesSource:
    """Content already held in memory."""

    def __init__(self, data: bytes):
        self._data = bytes(data)

    def open(self) -> BinaryIO:
        return io.BytesIO(self._data)

    async def read_all(self) -> bytes:
        return self._data

    def __repr__(self) -> str:
        return f"BytesSource({len(self._data)} bytes)"
