"""
Classifier - Single Responsibility: pick the transfer strategy for a file.

Extension and MIME are both consulted; either one matching is enough.
"""
from typing import Iterable, Optional

from ..models import FileDescriptor, Strategy

AUDIO_EXTENSIONS = frozenset({"mp3", "wav", "m4a", "aac", "ogg", "flac", "mpeg"})
IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif", "tif", "tiff", "bmp", "webp", "svg"})
DOCUMENT_EXTENSIONS = frozenset({
    "pdf", "doc", "docx", "txt", "odt", "rtf", "xls", "xlsx", "ppt", "pptx",
})
LETTER_ALLOWED_EXTENSIONS = IMAGE_EXTENSIONS | DOCUMENT_EXTENSIONS


def file_extension(name: str) -> str:
    """Lowercase text after the last dot, or "" when there is none."""
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def is_audio(file: FileDescriptor) -> bool:
    mime = (file.mime_type or "").lower()
    return mime.startswith("audio/") or file_extension(file.name) in AUDIO_EXTENSIONS


def is_image(file: FileDescriptor) -> bool:
    mime = (file.mime_type or "").lower()
    return mime.startswith("image/") or file_extension(file.name) in IMAGE_EXTENSIONS


def classify(file: FileDescriptor, force_base64: bool = False) -> Strategy:
    """
    Map a file to its transfer strategy.

    force_base64 suppresses the audio branch only; images and documents
    still route by their own type.
    """
    if not force_base64 and is_audio(file):
        return Strategy.AUDIO
    if is_image(file):
        return Strategy.IMAGE
    return Strategy.DOCUMENT


def validate_file(
    file: FileDescriptor,
    allowed_extensions: Iterable[str] = (),
    max_size_bytes: Optional[int] = None,
) -> None:
    """
    Caller-side checks applied before a transfer.

    Raises:
        ValueError: on a disallowed extension or an oversized file
    """
    allowed = [ext.lower().lstrip(".") for ext in allowed_extensions]
    ext = file_extension(file.name)
    if allowed and ext not in allowed:
        raise ValueError(f"Invalid file type .{ext}. Allowed: {', '.join(allowed)}")
    if max_size_bytes and file.size_bytes > max_size_bytes:
        raise ValueError(
            f"File too large ({round(file.size_bytes / 1024)} KB). "
            f"Max {round(max_size_bytes / 1024)} KB"
        )
