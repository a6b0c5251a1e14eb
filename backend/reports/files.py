"""
reports.files: Size and MIME-type checks for uploaded files.

Works on anything shaped like Django's ``UploadedFile``: a ``size`` in
bytes, a ``content_type`` and a ``name``.
"""

from __future__ import annotations

import mimetypes
from typing import Any, Iterable

BYTES_PER_MB = 1024 * 1024


def get_file_type(file: Any) -> str:
    """
    The declared MIME type of ``file``, falling back to a guess from
    its name (empty string when neither is known).
    """
    content_type = getattr(file, "content_type", None)
    if content_type:
        return content_type
    guessed, _ = mimetypes.guess_type(getattr(file, "name", "") or "")
    return guessed or ""


def validate_file_size(file: Any, max_size_mb: float) -> bool:
    """True when ``file.size`` does not exceed ``max_size_mb`` megabytes (inclusive)."""
    return file.size <= max_size_mb * BYTES_PER_MB


def validate_file_type(file: Any, allowed_types: Iterable[str]) -> bool:
    """
    True when the file's MIME type matches one of ``allowed_types``.

    Patterns are exact types (``image/png``) or a major-type wildcard
    (``image/*``) matching any subtype of that major type.
    """
    file_type = get_file_type(file)
    for pattern in allowed_types:
        if pattern.endswith("/*"):
            base_type = pattern.split("/", 1)[0]
            if file_type.startswith(f"{base_type}/"):
                return True
        elif file_type == pattern:
            return True
    return False


def get_file_extension(filename: str) -> str:
    """Lower-cased extension without the dot (``"photo.JPG"`` → ``"jpg"``)."""
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()
