from __future__ import annotations

import base64
import binascii

from PySide6.QtCore import QBuffer, QByteArray, QIODevice
from PySide6.QtGui import QImage, QImageWriter

from .errors import DecodeFailed, RenderingUnsupported
from .logger import get_logger

_logger = get_logger("encoder")

_MIME_BY_FORMAT = {
    "jpeg": "image/jpeg",
    "png": "image/png",
}


def _normalize_format(fmt: str) -> str:
    f = (fmt or "").strip().lower()
    if f == "jpg":
        f = "jpeg"
    if f not in _MIME_BY_FORMAT:
        raise ValueError(f"unsupported output format: {fmt}")
    return f


def encode_image_bytes(image: QImage, fmt: str = "jpeg", quality: int = 90) -> bytes:
    """Encode `image` with QImageWriter into memory.

    Raises:
        RenderingUnsupported: the image is null or the writer failed.
    """
    f = _normalize_format(fmt)
    if image.isNull():
        raise RenderingUnsupported("Nothing to encode")

    arr = QByteArray()
    buf = QBuffer(arr)
    buf.open(QIODevice.OpenModeFlag.WriteOnly)
    try:
        writer = QImageWriter(buf, f.encode("ascii"))
        writer.setQuality(int(quality))
        ok = writer.write(image)
        if not ok:
            _logger.error("image write failed (%s): %s", f, writer.errorString())
    finally:
        buf.close()
    if not ok:
        raise RenderingUnsupported(f"Could not encode the photo as {f.upper()}")
    return bytes(arr.data())


def encode_data_url(image: QImage, fmt: str = "jpeg", quality: int = 90) -> str:
    f = _normalize_format(fmt)
    data = encode_image_bytes(image, f, quality)
    payload = base64.b64encode(data).decode("ascii")
    _logger.debug("encoded %dx%d %s, %d bytes", image.width(), image.height(), f, len(data))
    return f"data:{_MIME_BY_FORMAT[f]};base64,{payload}"


def decode_data_url(url: str) -> tuple[str, bytes]:
    """Split a base64 data URL into (mime_type, bytes).

    Raises:
        DecodeFailed: `url` is not a base64 data URL.
    """
    if not url or not url.startswith("data:") or "," not in url:
        raise DecodeFailed("Not an image data URL")
    header, payload = url[5:].split(",", 1)
    parts = header.split(";")
    if "base64" not in parts[1:]:
        raise DecodeFailed("Only base64 data URLs are supported")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailed("Corrupt image data URL") from e
    return parts[0] or "application/octet-stream", data


def data_url_to_qimage(url: str) -> QImage:
    _, data = decode_data_url(url)
    image = QImage.fromData(data)
    if image.isNull():
        raise DecodeFailed()
    return image
