"""Selection validation for uploaded photos.

Runs before any decoding: a rejected file is never read past its metadata.
"""

from __future__ import annotations

import mimetypes
import os
from dataclasses import dataclass

from photo_uploader.errors import DecodeFailed, FileTooLarge, InvalidFormat
from photo_uploader.logger import get_logger

_logger = get_logger("validator")

ACCEPTED_MIME_TYPES = frozenset({"image/jpeg", "image/png"})
BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True, slots=True)
class CandidateFile:
    """A file the user picked, described before it is decoded."""

    name: str
    mime_type: str
    size_bytes: int
    path: str | None = None
    data: bytes | None = None


def candidate_from_path(path: str) -> CandidateFile:
    mime, _ = mimetypes.guess_type(path)
    try:
        size = os.stat(path).st_size
    except OSError as e:
        _logger.debug("stat failed for %s: %s", path, e)
        raise DecodeFailed(f"Could not read {os.path.basename(path)}") from e
    return CandidateFile(
        name=os.path.basename(path),
        mime_type=mime or "application/octet-stream",
        size_bytes=int(size),
        path=path,
    )


def candidate_from_bytes(name: str, data: bytes, mime_type: str | None = None) -> CandidateFile:
    if mime_type is None:
        mime_type, _ = mimetypes.guess_type(name)
    return CandidateFile(
        name=name,
        mime_type=mime_type or "application/octet-stream",
        size_bytes=len(data),
        data=data,
    )


def validate_selection(candidate: CandidateFile, max_size_mb: float = 10) -> CandidateFile:
    """Accept `candidate` or raise.

    Raises:
        InvalidFormat: MIME type is not JPEG or PNG (checked first).
        FileTooLarge: size is not strictly below `max_size_mb` MiB.
    """
    if candidate.mime_type not in ACCEPTED_MIME_TYPES:
        _logger.info("rejected %s: unsupported type %s", candidate.name, candidate.mime_type)
        raise InvalidFormat("Only JPG/PNG images can be uploaded")

    limit = max_size_mb * BYTES_PER_MB
    if not candidate.size_bytes < limit:
        _logger.info("rejected %s: %d bytes >= %s MB", candidate.name, candidate.size_bytes, max_size_mb)
        raise FileTooLarge(f"Image size must be under {max_size_mb:g}MB")

    _logger.debug("accepted %s (%s, %d bytes)", candidate.name, candidate.mime_type, candidate.size_bytes)
    return candidate


def read_candidate_bytes(candidate: CandidateFile) -> bytes:
    if candidate.data is not None:
        return candidate.data
    if not candidate.path:
        raise DecodeFailed(f"No data for {candidate.name}")
    try:
        with open(candidate.path, "rb") as f:
            return f.read()
    except OSError as e:
        _logger.error("read failed for %s: %s", candidate.path, e)
        raise DecodeFailed(f"Could not read {candidate.name}") from e
