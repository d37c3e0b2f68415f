import contextlib
from dataclasses import dataclass
from typing import Any

import numpy as np
from PySide6.QtGui import QImage

from photo_uploader.errors import DecodeFailed
from photo_uploader.logger import get_logger

_logger = get_logger("decoder")

RGBA_CHANNELS = 4

_pyvips: Any | None = None


def _get_pyvips_module() -> Any:
    global _pyvips
    if _pyvips is None:
        import pyvips  # type: ignore

        _pyvips = pyvips
    return _pyvips


@dataclass(frozen=True)
class SourceImage:
    """Decoded original photo. `image` is an RGBA QImage owning its pixels."""

    width: int
    height: int
    image: QImage


def _decode_rgba_with_pyvips(data: bytes) -> "np.ndarray":
    """Decode encoded image bytes into an (h, w, 4) uint8 RGBA array using pyvips."""
    pyvips = _get_pyvips_module()
    # Configure pyvips caches to avoid memory growth
    with contextlib.suppress(Exception):
        pyvips.cache_set_max(0)
        pyvips.cache_set_max_mem(0)
        pyvips.cache_set_max_files(0)

    # Random access: autorot may need to read rows out of order
    image = pyvips.Image.new_from_buffer(data, "")
    # Camera JPEGs carry their orientation in EXIF
    with contextlib.suppress(Exception):
        image = image.autorot()
    with contextlib.suppress(Exception):
        image = image.colourspace("srgb")
    if not image.hasalpha():
        image = image.bandjoin(255)
    if image.bands > RGBA_CHANNELS:
        image = image.extract_band(0, n=RGBA_CHANNELS)
    if image.format != "uchar":
        image = image.cast("uchar")

    mem = image.write_to_memory()
    array = np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, image.bands)
    array = array.copy()
    with contextlib.suppress(Exception):
        del image
    if array.shape[2] != RGBA_CHANNELS:
        raise RuntimeError(f"Unsupported band count after conversion: {array.shape[2]}")
    return array


def rgba_array_to_qimage(array: "np.ndarray") -> QImage:
    h, w = int(array.shape[0]), int(array.shape[1])
    buf = np.ascontiguousarray(array, dtype=np.uint8)
    # copy() detaches the QImage from the numpy buffer
    return QImage(buf.data, w, h, w * RGBA_CHANNELS, QImage.Format.Format_RGBA8888).copy()


def decode_image_bytes(data: bytes) -> SourceImage:
    """Decode `data` into a SourceImage.

    Raises:
        DecodeFailed: the bytes are not a decodable image.
    """
    if not data:
        raise DecodeFailed("The image file is empty")
    try:
        array = _decode_rgba_with_pyvips(data)
    except Exception as e:
        _logger.debug("decode failed: %s", e)
        raise DecodeFailed() from e

    qimg = rgba_array_to_qimage(array)
    if qimg.isNull():
        raise DecodeFailed()
    _logger.debug("decoded %dx%d image", qimg.width(), qimg.height())
    return SourceImage(width=qimg.width(), height=qimg.height(), image=qimg)


def decode_image(data: bytes) -> tuple[SourceImage | None, str | None]:
    """Decode without raising. Returns (source|None, error|None)."""
    try:
        return decode_image_bytes(data), None
    except DecodeFailed as e:
        return None, e.message
