"""
Credential Resolver - builds the header set for requests that bypass the
shared client (multipart uploads).

Precedence: explicit headers, then ambient shared headers on top, then a
stored-token Authorization only when none is present yet.
"""
import json
import logging
from pathlib import Path
from typing import Mapping, Optional, Sequence

import httpx

from ..models import DEFAULT_CREDENTIAL_KEYS
from ..protocols import ICredentialProvider, ITokenStore

logger = logging.getLogger(__name__)

AUTH_SCHEMES = ("Bearer", "Basic", "Token")


def as_authorization(token: str) -> str:
    """Prefix a stored token with Bearer unless it already carries a scheme."""
    scheme, sep, _ = token.partition(" ")
    if sep and scheme in AUTH_SCHEMES:
        return token
    return f"Bearer {token}"


def resolve_headers(
    explicit: Optional[Mapping[str, str]],
    provider: Optional[ICredentialProvider],
    credential_keys: Sequence[str] = DEFAULT_CREDENTIAL_KEYS,
) -> httpx.Headers:
    headers = httpx.Headers(dict(explicit or {}))
    if provider is None:
        return headers

    headers.update(dict(provider.shared_headers()))

    if not headers.get("Authorization"):
        for key in credential_keys:
            token = provider.lookup(key)
            if token:
                logger.debug(f"Authorization taken from stored credential '{key}'")
                headers["Authorization"] = as_authorization(token)
                break
        else:
            if "Authorization" in headers:
                del headers["Authorization"]

    return headers


class MemoryTokenStore:
    """Token store backed by a plain mapping."""

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values = dict(values or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)


class JsonFileTokenStore:
    """
    Token store backed by a flat JSON object on disk.

    The file is re-read on every lookup; a missing or unreadable file is
    treated as an empty store.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    def get(self, key: str) -> Optional[str]:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read credentials file {self._path}: {e}")
            return None
        if not isinstance(data, dict):
            return None
        value = data.get(key)
        return str(value) if value else None


class StaticCredentialProvider:
    """Credential provider with fixed shared headers and a token store."""

    def __init__(
        self,
        headers: Optional[Mapping[str, str]] = None,
        store: Optional[ITokenStore] = None,
    ):
        self._headers = dict(headers or {})
        self._store = store or MemoryTokenStore()

    def shared_headers(self) -> Mapping[str, str]:
        return dict(self._headers)

    def lookup(self, key: str) -> Optional[str]:
        return self._store.get(key)
