"""HTTP adapter for the shared API client."""
from __future__ import annotations

import logging
from typing import Dict, Mapping, Optional

import httpx

from ..errors import UploadHTTPError, UploadNetworkError
from ..models import TransferConfig
from ..protocols import ITokenStore
from ..utils.cancellation import CancellationToken, run_cancellable
from .response import parse_body

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class StoredTokenAuth(httpx.Auth):
    """Adds a Bearer Authorization from the token store to outgoing requests."""

    def __init__(self, store: Optional[ITokenStore], key: str):
        self._store = store
        self._key = key

    def auth_flow(self, request: httpx.Request):
        if self._store is not None and not request.headers.get("Authorization"):
            token = self._store.get(self._key)
            if token:
                request.headers["Authorization"] = f"Bearer {token}"
        yield request


class HTTPAPIClient:
    """
    Shared HTTP client for API calls.

    Implements IAPIClient, and doubles as the ambient ICredentialProvider and
    IBaseURLProvider for uploads that bypass its default headers.

    Usage:
        async with HTTPAPIClient(TransferConfig.from_env(), store) as api:
            response = await api.post("/letters/", json=payload)
    """

    def __init__(
        self,
        config: Optional[TransferConfig] = None,
        token_store: Optional[ITokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._config = config or TransferConfig()
        self._token_store = token_store
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self):
        self._client = httpx.AsyncClient(
            base_url=self._config.base_url,
            timeout=self._config.timeout,
            headers=DEFAULT_HEADERS,
            auth=StoredTokenAuth(self._token_store, self._config.interceptor_token_key),
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RuntimeError("HTTPAPIClient not initialized. Use 'async with' context.")
        return self._client

    def shared_headers(self) -> Mapping[str, str]:
        if self._client:
            return dict(self._client.headers)
        return dict(DEFAULT_HEADERS)

    def lookup(self, key: str) -> Optional[str]:
        if self._token_store is None:
            return None
        return self._token_store.get(key)

    def base_url(self) -> str:
        return self._config.base_url

    async def post(
        self,
        endpoint: str,
        json: Dict,
        cancellation: Optional[CancellationToken] = None,
    ) -> httpx.Response:
        """
        POST JSON through the shared client.

        Raises:
            UploadHTTPError: non-2xx response
            UploadNetworkError: no response (connection failure or timeout)
            UploadAborted: cancellation token fired
        """
        client = self._require_client()
        try:
            response = await run_cancellable(client.post(endpoint, json=json), cancellation)
        except httpx.TimeoutException as exc:
            raise UploadNetworkError("Upload failed: timeout") from exc
        except httpx.RequestError as exc:
            raise UploadNetworkError("Network / no response") from exc

        logger.debug(f"POST {endpoint} -> {response.status_code}")
        if not response.is_success:
            raise UploadHTTPError(response.status_code, parse_body(response))
        return response

    async def send(
        self,
        request: httpx.Request,
        cancellation: Optional[CancellationToken] = None,
    ) -> httpx.Response:
        """
        Send a pre-built request without client auth or default headers.

        Any HTTP status is returned as-is; only transport failures raise.
        """
        client = self._require_client()
        request.extensions.setdefault("timeout", client.timeout.as_dict())
        try:
            return await run_cancellable(client.send(request, auth=None), cancellation)
        except httpx.TimeoutException as exc:
            raise UploadNetworkError("Upload failed: timeout") from exc
        except httpx.RequestError as exc:
            raise UploadNetworkError("Upload failed: Network / no response") from exc
