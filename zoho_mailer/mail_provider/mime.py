"""MIME type lookup for attachment uploads."""

import mimetypes
import os

DEFAULT_MIME_TYPE = "application/octet-stream"

_FALLBACK_TYPES = {
    ".pdf": "application/pdf",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def detect_mime_type(file_path: str | os.PathLike) -> str:
    """Guess from the extension via the platform registry, then the built-in table."""
    guessed, _ = mimetypes.guess_type(os.fspath(file_path))
    if guessed:
        return guessed
    ext = os.path.splitext(os.fspath(file_path))[1].lower()
    return _FALLBACK_TYPES.get(ext, DEFAULT_MIME_TYPE)
