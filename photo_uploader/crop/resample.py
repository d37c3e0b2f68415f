"""Map a display-space crop frame back to source pixels and resample it.

Pure functions over QImage/QPainter, no widgets.
"""

from __future__ import annotations

from dataclasses import dataclass

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QImage, QPainter

from photo_uploader.decoder import SourceImage
from photo_uploader.errors import RenderingUnsupported
from photo_uploader.logger import get_logger
from photo_uploader.ops.crop_controller import CropRect, DisplayGeometry, aspect_fit

_logger = get_logger("resample")


@dataclass(frozen=True, slots=True)
class SourceRect:
    """Region of the source image in pixel coordinates (floats)."""

    x: float
    y: float
    w: float
    h: float


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def _clamp_axis(pos: float, size: float, limit: float) -> float:
    # Fits: keep the region inside [0, limit]. Larger than the source: keep
    # the source inside the region so the overhang becomes background.
    lo, hi = sorted((0.0, limit - size))
    return _clamp(pos, lo, hi)


def map_crop_to_source(crop: CropRect, geometry: DisplayGeometry, source_w: int, source_h: int) -> SourceRect:
    """Convert `crop` (display space) into source pixel coordinates.

    The region keeps the frame's aspect ratio. Where the frame extends past
    the fitted image (e.g. a landscape photo under a portrait frame) the
    region is larger than the source on that axis; `render_crop` draws only
    the overlap and leaves the rest white.
    """
    scale = geometry.scale
    if scale <= 0:
        raise ValueError(f"invalid display scale {scale}")
    src_w = crop.w / scale
    src_h = crop.h / scale
    src_x = _clamp_axis((crop.x - geometry.offset_x) / scale, src_w, float(source_w))
    src_y = _clamp_axis((crop.y - geometry.offset_y) / scale, src_h, float(source_h))
    return SourceRect(src_x, src_y, src_w, src_h)


def render_crop(source: SourceImage, region: SourceRect, out_w: int, out_h: int) -> QImage:
    """Draw `region` of `source` scaled onto a white out_w x out_h canvas.

    Only the part of `region` that overlaps the source is drawn, into the
    matching part of the canvas, so the scale is the same on both axes.

    Raises:
        RenderingUnsupported: the canvas or painter could not be created.
    """
    canvas = QImage(int(out_w), int(out_h), QImage.Format.Format_RGB32)
    if canvas.isNull():
        _logger.error("could not allocate %dx%d canvas", out_w, out_h)
        raise RenderingUnsupported()
    # Transparent sources and the area outside the photo stay white
    canvas.fill(Qt.GlobalColor.white)

    ix0 = max(region.x, 0.0)
    iy0 = max(region.y, 0.0)
    ix1 = min(region.x + region.w, float(source.width))
    iy1 = min(region.y + region.h, float(source.height))
    if region.w <= 0 or region.h <= 0 or ix1 <= ix0 or iy1 <= iy0:
        _logger.debug("crop region %s does not overlap the source", region)
        return canvas

    sx = canvas.width() / region.w
    sy = canvas.height() / region.h
    target = QRectF((ix0 - region.x) * sx, (iy0 - region.y) * sy, (ix1 - ix0) * sx, (iy1 - iy0) * sy)

    painter = QPainter()
    if not painter.begin(canvas):
        _logger.error("QPainter.begin failed on output canvas")
        raise RenderingUnsupported()
    try:
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.drawImage(target, source.image, QRectF(ix0, iy0, ix1 - ix0, iy1 - iy0))
    finally:
        painter.end()
    return canvas


def resample(
    source: SourceImage,
    crop: CropRect,
    container_w: float,
    container_h: float,
    out_w: int,
    out_h: int,
) -> QImage:
    """Recompute the display geometry for the actual container and render the crop."""
    geometry = aspect_fit(source.width, source.height, container_w, container_h)
    region = map_crop_to_source(crop, geometry, source.width, source.height)
    _logger.debug(
        "resample crop=%s container=%sx%s -> src=%s out=%dx%d",
        crop,
        container_w,
        container_h,
        region,
        out_w,
        out_h,
    )
    return render_crop(source, region, out_w, out_h)
