"""Errors raised by the photo upload pipeline.

Every error carries a one-line, user-facing `message`. They are raised by the
pure layers (validator, decoder, resampler, encoder) and caught only at the UI
boundary, which logs them and shows a notification. None of them is fatal: the
current attempt is dropped and the previous photo stays as it was.
"""

from __future__ import annotations


class PhotoUploadError(Exception):
    """Base class for a failed upload attempt."""

    default_message = "Photo upload failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidFormat(PhotoUploadError):
    default_message = "Only JPG/PNG images can be uploaded"


class FileTooLarge(PhotoUploadError):
    default_message = "Image is too large"


class DecodeFailed(PhotoUploadError):
    default_message = "Could not read the image"


class RenderingUnsupported(PhotoUploadError):
    default_message = "Image rendering is not available"


__all__ = [
    "DecodeFailed",
    "FileTooLarge",
    "InvalidFormat",
    "PhotoUploadError",
    "RenderingUnsupported",
]
