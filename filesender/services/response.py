"""Response Normalizer - pull one file reference out of a server response."""
import json
from typing import Any, Callable, Mapping, Optional, Tuple

import httpx

_Rule = Callable[[Mapping[str, Any]], Optional[str]]


def _field(name: str, strings_only: bool = False) -> _Rule:
    def rule(body: Mapping[str, Any]) -> Optional[str]:
        value = body.get(name)
        if not value:
            return None
        if strings_only and not isinstance(value, str):
            return None
        return str(value)

    return rule


# Ordered: semantic fields before generic ones
EXTRACTION_RULES: Tuple[_Rule, ...] = (
    _field("file_identifier"),
    _field("recorded_call", strings_only=True),
    _field("letter_document", strings_only=True),
    _field("id"),
    _field("url"),
    _field("path"),
)


def extract_file_ref(body: Any) -> Optional[str]:
    """
    Return the file reference carried by a response body.

    None means "uploaded, but no reference available", not a failure.
    """
    if not body:
        return None
    if isinstance(body, str):
        return body
    if not isinstance(body, Mapping):
        return None
    for rule in EXTRACTION_RULES:
        ref = rule(body)
        if ref is not None:
            return ref
    return None


def parse_body(response: httpx.Response) -> Any:
    """JSON body when parseable, raw text otherwise, None when empty."""
    text = response.text
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text
