from __future__ import annotations

import numpy as np
import pytest
from PySide6.QtGui import QColor, QImage

from photo_uploader.crop import SourceRect, map_crop_to_source, render_crop, resample
from photo_uploader.errors import RenderingUnsupported
from photo_uploader.ops.crop_controller import CropRect, DisplayGeometry, aspect_fit, initial_crop_rect
from tests.helpers.images import (
    dark_run,
    marker_image,
    qimage_to_array,
    quadrant_image,
    source_from_qimage,
    split_image,
)


def test_map_crop_uses_scale_and_offset():
    g = aspect_fit(1200, 1600, 400, 400)  # scale .25, offset_x 50
    crop = CropRect(50, 0, 300, 400)
    region = map_crop_to_source(crop, g, 1200, 1600)
    assert region == SourceRect(0, 0, 1200, 1600)

    crop = CropRect(100, 100, 150, 200)
    region = map_crop_to_source(crop, g, 1200, 1600)
    assert region.x == pytest.approx(200)
    assert region.y == pytest.approx(400)
    assert region.w == pytest.approx(600)
    assert region.h == pytest.approx(800)


def test_map_crop_clamps_into_source():
    g = aspect_fit(1200, 1600, 400, 400)
    # Frame over the left letterbox band maps to a negative x
    region = map_crop_to_source(CropRect(0, 0, 100, 100), g, 1200, 1600)
    assert region.x == 0
    # Frame touching the right edge with float drift
    region = map_crop_to_source(CropRect(250.0000001, 300.0000001, 100, 100), g, 1200, 1600)
    assert region.x + region.w <= 1200
    assert region.y + region.h <= 1600


def test_map_crop_with_stale_geometry_still_covers_source():
    # Geometry computed for a smaller scale than the one the frame lives in
    stale = DisplayGeometry(width=150, height=200, offset_x=0, offset_y=0, scale=0.125)
    region = map_crop_to_source(CropRect(200, 300, 300, 400), stale, 1200, 1600)
    assert region.w / region.h == pytest.approx(0.75)
    assert region.x <= 0 and region.x + region.w >= 1200
    assert region.y <= 0 and region.y + region.h >= 1600


def test_map_crop_keeps_frame_ratio_for_landscape_source():
    ratio = 400 / 533
    crop = initial_crop_rect(400, 400, ratio)
    region = map_crop_to_source(crop, aspect_fit(1600, 1200, 400, 400), 1600, 1200)
    assert region.w / region.h == pytest.approx(ratio)
    # Frame is taller than the fitted photo: the overhang is split evenly
    assert region.y < 0
    assert region.y + region.h > 1200
    assert region.y + region.h / 2 == pytest.approx(600)
    assert 0 <= region.x <= 1600 - region.w


def test_landscape_crop_is_not_stretched_and_pads_white():
    source = source_from_qimage(marker_image(1600, 1200, 200))
    crop = initial_crop_rect(400, 400, 400 / 533)
    arr = qimage_to_array(resample(source, crop, 400, 400, 400, 533))

    cy, cx = 533 // 2, 400 // 2
    marker_w = dark_run(arr[cy])
    marker_h = dark_run(arr[:, cx])
    assert marker_w == pytest.approx(200 * 400 / 1200, abs=3)
    assert abs(marker_w - marker_h) <= 2

    # Photo spans roughly rows 67..466; above and below is background
    assert (arr[:60, :, :3] >= 250).all()
    assert (arr[475:, :, :3] >= 250).all()
    assert arr[100, 20, 0] == pytest.approx(128, abs=3)


def test_render_region_outside_source_stays_white():
    img = QImage(20, 20, QImage.Format.Format_RGB32)
    img.fill(QColor(0, 0, 0))
    out = render_crop(source_from_qimage(img), SourceRect(40, 40, 10, 10), 10, 10)
    assert (qimage_to_array(out)[..., :3] == 255).all()


def test_render_partial_overlap_draws_matching_part():
    img = QImage(100, 100, QImage.Format.Format_RGB32)
    img.fill(QColor(0, 0, 255))
    # Left half of the region hangs off the source
    out = render_crop(source_from_qimage(img), SourceRect(-50, 0, 100, 100), 100, 100)
    arr = qimage_to_array(out)
    assert (arr[:, :48, :3] == 255).all()
    assert (arr[:, 52:, 2] > 240).all()
    assert (arr[:, 52:, 0] < 15).all()


def test_render_fills_output_size_and_white_background():
    img = QImage(40, 40, QImage.Format.Format_RGBA8888)
    img.fill(QColor(0, 0, 0, 0))
    out = render_crop(source_from_qimage(img), SourceRect(0, 0, 40, 40), 30, 40)
    assert (out.width(), out.height()) == (30, 40)
    arr = qimage_to_array(out)
    assert (arr[..., :3] == 255).all()


def test_render_region_selects_correct_half():
    img = split_image(100, 100, QColor(255, 0, 0), QColor(0, 0, 255))
    out = render_crop(source_from_qimage(img), SourceRect(60, 0, 30, 40), 30, 40)
    arr = qimage_to_array(out)
    assert arr[20, 15, 2] > 240
    assert arr[20, 15, 0] < 15


def test_render_raises_when_canvas_unavailable():
    img = QImage(10, 10, QImage.Format.Format_RGBA8888)
    img.fill(QColor(1, 2, 3))
    with pytest.raises(RenderingUnsupported):
        render_crop(source_from_qimage(img), SourceRect(0, 0, 10, 10), 0, 0)


def test_round_trip_full_frame_keeps_pixels():
    src_img = quadrant_image(300, 400)
    source = source_from_qimage(src_img)
    crop = initial_crop_rect(300, 400, 300 / 400)
    assert crop == CropRect(0, 0, 300, 400)
    out = resample(source, crop, 300, 400, 300, 400)
    diff = np.abs(qimage_to_array(out).astype(int) - qimage_to_array(src_img).astype(int))
    assert diff[..., :3].max() <= 2


def test_centered_crop_is_deterministic():
    source = source_from_qimage(quadrant_image(1200, 1600))
    crop = initial_crop_rect(400, 400, 400 / 533)
    a = qimage_to_array(resample(source, crop, 400, 400, 400, 533))
    b = qimage_to_array(resample(source, crop, 400, 400, 400, 533))
    assert np.array_equal(a, b)
