"""Field-name resolution and metadata merging shared by both transports."""
import json
from typing import Any, Dict, Mapping, Optional

from ..models import FileDescriptor


def find_file_key(meta: Mapping[str, Any], file: FileDescriptor) -> Optional[str]:
    """Key under which the caller placed the file itself, if any."""
    for key, value in meta.items():
        if value is file:
            return key
    return None


def resolve_field_name(meta: Mapping[str, Any], file: FileDescriptor, default: str) -> str:
    return find_file_key(meta, file) or default


def without_file(meta: Mapping[str, Any], file: FileDescriptor) -> Dict[str, Any]:
    """Shallow copy of meta with every alias of the file removed."""
    return {key: value for key, value in meta.items() if value is not file}


def stringify_extras(meta: Mapping[str, Any], file: FileDescriptor) -> Dict[str, str]:
    """
    Multipart form fields for every metadata entry except the file aliases.

    None values are dropped; non-strings are JSON-encoded.
    """
    fields: Dict[str, str] = {}
    for key, value in without_file(meta, file).items():
        if value is None:
            continue
        fields[key] = value if isinstance(value, str) else json.dumps(value)
    return fields
