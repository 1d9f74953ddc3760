"""
Protocols (Interfaces) for Dependency Inversion.

Following Interface Segregation Principle - small, focused interfaces.
"""
from typing import Any, BinaryIO, Dict, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class IByteSource(Protocol):
    """Interface for file content: streamed or fully read."""

    def open(self) -> BinaryIO:
        """Open a fresh binary stream positioned at the start."""
        ...

    async def read_all(self) -> bytes:
        """Read the whole content into memory."""
        ...


@runtime_checkable
class ITokenStore(Protocol):
    """Interface for local credential storage (read-only)."""

    def get(self, key: str) -> Optional[str]:
        ...


@runtime_checkable
class ICredentialProvider(Protocol):
    """Interface for ambient headers and stored credentials."""

    def shared_headers(self) -> Mapping[str, str]:
        """Headers the shared HTTP client sends by default."""
        ...

    def lookup(self, key: str) -> Optional[str]:
        """Stored credential for key, if any."""
        ...


@runtime_checkable
class IBaseURLProvider(Protocol):
    """Interface for the configured API base URL."""

    def base_url(self) -> str:
        ...


@runtime_checkable
class IAPIClient(Protocol):
    """Interface for API operations."""

    async def post(self, endpoint: str, json: Dict, cancellation=None) -> Any:
        """POST JSON to API."""
        ...

    async def send(self, request: Any, cancellation=None) -> Any:
        """Send a pre-built request."""
        ...
