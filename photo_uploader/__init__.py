"""Profile photo upload and crop pipeline for the resume editor."""

from photo_uploader.errors import (
    DecodeFailed,
    FileTooLarge,
    InvalidFormat,
    PhotoUploadError,
    RenderingUnsupported,
)

__all__ = [
    "DecodeFailed",
    "FileTooLarge",
    "InvalidFormat",
    "PhotoUploadError",
    "RenderingUnsupported",
]
