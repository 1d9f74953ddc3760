"""URL Resolver - join endpoint paths onto the configured base URL."""
import re

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def is_absolute_url(path: str) -> bool:
    return bool(_ABSOLUTE_URL.match(path))


def resolve_url(path: str, configured_base: str = "") -> str:
    """
    Resolve an endpoint against a base URL.

    Absolute URLs, and any path when no base is configured (relative
    request), are returned unchanged.
    """
    base = (configured_base or "").rstrip("/")
    if is_absolute_url(path) or not base:
        return path
    if not path.startswith("/"):
        path = f"/{path}"
    return f"{base}{path}"


class StaticBaseURL:
    """Base URL provider holding a fixed value."""

    def __init__(self, base_url: str = ""):
        self._base_url = base_url

    def base_url(self) -> str:
        return self._base_url
