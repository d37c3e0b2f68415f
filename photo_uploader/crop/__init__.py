"""Crop package public API.

Expose the pure resampling helpers as `photo_uploader.crop`.

Important: keep this module lightweight.
Do NOT import the widget modules here.
If you need the interactive dialog, import it directly:
    - `from photo_uploader.crop.ui_crop import CropDialog`
"""

from .resample import SourceRect, map_crop_to_source, render_crop, resample

__all__ = [
    "SourceRect",
    "map_crop_to_source",
    "render_crop",
    "resample",
]
