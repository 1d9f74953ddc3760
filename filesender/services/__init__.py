"""Services for filesender module."""
from .api_client import HTTPAPIClient, StoredTokenAuth
from .base64_json import Base64Uploader, read_as_base64
from .classifier import (
    AUDIO_EXTENSIONS,
    DOCUMENT_EXTENSIONS,
    IMAGE_EXTENSIONS,
    LETTER_ALLOWED_EXTENSIONS,
    classify,
    validate_file,
)
from .credentials import (
    JsonFileTokenStore,
    MemoryTokenStore,
    StaticCredentialProvider,
    resolve_headers,
)
from .endpoints import StaticBaseURL, resolve_url
from .multipart import MultipartUploader
from .response import extract_file_ref
from .sources import BytesSource, PathSource

__all__ = [
    "HTTPAPIClient",
    "StoredTokenAuth",
    "Base64Uploader",
    "read_as_base64",
    "AUDIO_EXTENSIONS",
    "DOCUMENT_EXTENSIONS",
    "IMAGE_EXTENSIONS",
    "LETTER_ALLOWED_EXTENSIONS",
    "classify",
    "validate_file",
    "JsonFileTokenStore",
    "MemoryTokenStore",
    "StaticCredentialProvider",
    "resolve_headers",
    "StaticBaseURL",
    "resolve_url",
    "MultipartUploader",
    "extract_file_ref",
    "BytesSource",
    "PathSource",
]
