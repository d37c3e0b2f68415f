from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal

from photo_uploader.ops.crop_controller import CropRect


class CropState(QObject):
    """State bound by the crop dialog widgets.

    Design:
    - Crop rect is stored in display (container) coordinates.
    - The CropBoxController is authoritative for clamping and the aspect
      ratio; this object only mirrors its result for painting.
    """

    activeChanged = Signal(bool)
    draggingChanged = Signal(bool)
    imageWidthChanged = Signal(int)
    imageHeightChanged = Signal(int)
    rectChanged = Signal(float, float, float, float)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._active = False
        self._dragging = False
        self._image_w = 0
        self._image_h = 0
        self._rect = CropRect(0.0, 0.0, 0.0, 0.0)

    # ---- read-only properties (mutate via owner) ----
    def _get_active(self) -> bool:
        return bool(self._active)

    active = Property(bool, _get_active, notify=activeChanged)  # type: ignore[arg-type]

    def _get_dragging(self) -> bool:
        return bool(self._dragging)

    dragging = Property(bool, _get_dragging, notify=draggingChanged)  # type: ignore[arg-type]

    def _get_image_width(self) -> int:
        return int(self._image_w)

    imageWidth = Property(int, _get_image_width, notify=imageWidthChanged)  # type: ignore[arg-type]

    def _get_image_height(self) -> int:
        return int(self._image_h)

    imageHeight = Property(int, _get_image_height, notify=imageHeightChanged)  # type: ignore[arg-type]

    @property
    def rect(self) -> CropRect:
        return self._rect

    # ---- internal mutation helpers ----
    def _set_active(self, value: bool) -> None:
        v = bool(value)
        if v == self._active:
            return
        self._active = v
        self.activeChanged.emit(v)

    def _set_dragging(self, value: bool) -> None:
        v = bool(value)
        if v == self._dragging:
            return
        self._dragging = v
        self.draggingChanged.emit(v)

    def _set_image_size(self, w: int, h: int) -> None:
        iw = int(w)
        ih = int(h)
        if iw != self._image_w:
            self._image_w = iw
            self.imageWidthChanged.emit(iw)
        if ih != self._image_h:
            self._image_h = ih
            self.imageHeightChanged.emit(ih)

    def _set_rect(self, rect: CropRect) -> None:
        if rect == self._rect:
            return
        self._rect = rect
        self.rectChanged.emit(float(rect.x), float(rect.y), float(rect.w), float(rect.h))
