"""Validation helpers for uploaded content artifacts."""

from pathlib import PurePath
from typing import Optional

from models.content_record import MEDIA_PDF, MEDIA_VIDEO
from utils.errors import ValidationError

ALLOWED_CONTENT_TYPES = {
    "application/pdf": MEDIA_PDF,
    "video/mp4": MEDIA_VIDEO,
    "video/webm": MEDIA_VIDEO,
    "video/quicktime": MEDIA_VIDEO,
}

_EXTENSION_TYPES = {
    ".pdf": "application/pdf",
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
}


def normalize_content_type(content_type: Optional[str]) -> str:
    """Lower-case a MIME type and strip parameters such as `;codecs=...`."""
    return (content_type or "").lower().split(";", 1)[0].strip()


def resolve_media_type(content_type: Optional[str], filename: Optional[str]) -> str:
    """Return `pdf` or `video` for an upload, or raise a 415 ValidationError.

    The declared content type decides. Only when the client sent none (or the
    generic `application/octet-stream`) is the filename extension consulted.
    """
    mime = normalize_content_type(content_type)
    if mime in ("", "application/octet-stream") and filename:
        mime = _EXTENSION_TYPES.get(PurePath(filename).suffix.lower(), mime)
    media_type = ALLOWED_CONTENT_TYPES.get(mime)
    if media_type is None:
        raise ValidationError(
            f"Unsupported content type: {content_type or 'unknown'}. Only PDF and video files are allowed.",
            status_code=415,
        )
    return media_type


def safe_filename(filename: Optional[str], default: str = "upload") -> str:
    """Strip directory components and unsafe characters from a client filename."""
    name = PurePath((filename or "").replace("\\", "/")).name.strip()
    cleaned = "".join(ch if ch.isalnum() or ch in "._-" else "_" for ch in name).lstrip(".")
    return cleaned[:200] or default
