"""Crop dialog UI components.

A fixed-aspect crop frame panned over an aspect-fit image. The frame can only
move; its size is fixed by the container and the output aspect ratio.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator

from PySide6.QtCore import QPointF, QRectF, QSize, Qt
from PySide6.QtGui import QColor, QPainter, QPainterPath, QPen, QPixmap
from PySide6.QtWidgets import (
    QApplication,
    QDialog,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from photo_uploader.app.state.crop_state import CropState
from photo_uploader.decoder import SourceImage
from photo_uploader.errors import PhotoUploadError
from photo_uploader.logger import get_logger
from photo_uploader.ops.crop_controller import (
    CropBoxController,
    CropRect,
    DisplayGeometry,
    DragState,
    aspect_fit,
)
from photo_uploader.pipeline import PhotoCropPipeline

_logger = get_logger("ui_crop")

MASK_COLOR = QColor(0, 0, 0, 140)
FRAME_COLOR = QColor(52, 152, 219)
BACKGROUND_COLOR = QColor(245, 245, 245)


@contextlib.contextmanager
def _busy_cursor() -> Iterator[None]:
    try:
        QApplication.setOverrideCursor(Qt.CursorShape.WaitCursor)
        yield
    finally:
        QApplication.restoreOverrideCursor()


class CropCanvas(QWidget):
    """Paints the image, the dimmed mask and the crop frame; routes drags to the controller."""

    def __init__(self, source: SourceImage, ratio: float, container: QSize, parent: QWidget | None = None):
        super().__init__(parent)
        self._source = source
        self._pixmap = QPixmap.fromImage(source.image)
        self.state = CropState(self)
        self.state._set_image_size(source.width, source.height)
        # Painting and the cursor follow the state object, not the controller
        self.state.rectChanged.connect(self._on_state_rect_changed)
        self.state.draggingChanged.connect(self._on_dragging_changed)
        self.state.activeChanged.connect(self.setEnabled)

        self.controller = CropBoxController(
            container.width(),
            container.height(),
            ratio,
            on_enter_drag=self._on_enter_drag,
            on_exit_drag=self._on_exit_drag,
        )
        self.controller.on_change(self._on_rect_changed)
        self.geometry_fit: DisplayGeometry = aspect_fit(
            source.width, source.height, container.width(), container.height()
        )
        self.state._set_rect(self.controller.rect)

        self.setFixedSize(container)
        self.setSizePolicy(QSizePolicy.Policy.Fixed, QSizePolicy.Policy.Fixed)
        self.setCursor(Qt.CursorShape.OpenHandCursor)

    # ---- state machine enter/exit actions ----
    def _on_enter_drag(self) -> None:
        with contextlib.suppress(Exception):
            self.grabMouse()
        self.state._set_dragging(True)

    def _on_exit_drag(self) -> None:
        with contextlib.suppress(Exception):
            self.releaseMouse()
        self.state._set_dragging(False)

    def _on_rect_changed(self, rect: CropRect) -> None:
        self.state._set_rect(rect)

    # ---- state slots ----
    def _on_state_rect_changed(self, x: float, y: float, w: float, h: float) -> None:
        self.update()

    def _on_dragging_changed(self, dragging: bool) -> None:
        self.setCursor(Qt.CursorShape.ClosedHandCursor if dragging else Qt.CursorShape.OpenHandCursor)

    # ---- Qt events ----
    def resizeEvent(self, event) -> None:  # type: ignore
        super().resizeEvent(event)
        w, h = self.width(), self.height()
        if (float(w), float(h)) == self.controller.container or w <= 0 or h <= 0:
            return
        _logger.debug("canvas resized to %dx%d, re-centering crop frame", w, h)
        self.geometry_fit = aspect_fit(self._source.width, self._source.height, w, h)
        self.controller.reset(w, h)

    def mousePressEvent(self, event) -> None:  # type: ignore
        if event.button() != Qt.MouseButton.LeftButton:
            return super().mousePressEvent(event)
        pos = event.position()
        if self.controller.press(pos.x(), pos.y()):
            event.accept()
        else:
            event.ignore()

    def mouseMoveEvent(self, event) -> None:  # type: ignore
        if self.controller.state is not DragState.DRAGGING:
            return super().mouseMoveEvent(event)
        pos = event.position()
        self.controller.move(pos.x(), pos.y())
        event.accept()

    def mouseReleaseEvent(self, event) -> None:  # type: ignore
        if event.button() == Qt.MouseButton.LeftButton:
            self.controller.release()
            event.accept()
            return
        super().mouseReleaseEvent(event)

    def paintEvent(self, event) -> None:  # type: ignore
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
            painter.fillRect(self.rect(), BACKGROUND_COLOR)

            g = self.geometry_fit
            painter.drawPixmap(QRectF(g.offset_x, g.offset_y, g.width, g.height), self._pixmap, QRectF(self._pixmap.rect()))

            r = self.state.rect
            frame = QRectF(r.x, r.y, r.w, r.h)

            # Dimmed mask with a punch-hole over the selection
            mask = QPainterPath()
            mask.setFillRule(Qt.FillRule.OddEvenFill)
            mask.addRect(QRectF(self.rect()))
            mask.addRect(frame)
            painter.fillPath(mask, MASK_COLOR)

            painter.setPen(QPen(FRAME_COLOR, 2, Qt.PenStyle.DashLine))
            painter.drawRect(frame.adjusted(1, 1, -1, -1))
        finally:
            painter.end()

    def frame_center(self) -> QPointF:
        r = self.state.rect
        return QPointF(r.x + r.w / 2, r.y + r.h / 2)


class CropDialog(QDialog):
    """Modal crop step of the upload. `result_data_url()` holds the photo after accept."""

    def __init__(self, parent: QWidget | None, source: SourceImage, pipeline: PhotoCropPipeline):
        super().__init__(parent)
        self.setWindowTitle("Crop photo")
        self.setModal(True)

        self._pipeline = pipeline
        self._source: SourceImage | None = source
        self._result_url: str | None = None

        config = pipeline.config
        self.canvas = CropCanvas(
            source,
            config.aspect_ratio,
            QSize(config.container_width, config.container_height),
            self,
        )
        self.canvas.state._set_active(True)
        self._setup_ui()
        _logger.info("Opened crop dialog for %dx%d photo", source.width, source.height)

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(10)

        layout.addWidget(self.canvas, alignment=Qt.AlignmentFlag.AlignHCenter)

        hint = QLabel("Drag the frame to choose the area to keep.")
        hint.setStyleSheet("color: #666; font-size: 12px;")
        layout.addWidget(hint)

        buttons = QHBoxLayout()
        buttons.addStretch()
        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.clicked.connect(self.reject)
        buttons.addWidget(self.cancel_btn)

        self.confirm_btn = QPushButton("Confirm")
        self.confirm_btn.setDefault(True)
        self.confirm_btn.clicked.connect(self._on_confirm)
        buttons.addWidget(self.confirm_btn)
        layout.addLayout(buttons)

    def _on_confirm(self) -> None:
        if self._source is None:
            return
        try:
            with _busy_cursor():
                url = self._pipeline.confirm(
                    self._source,
                    self.canvas.controller,
                    self.canvas.width(),
                    self.canvas.height(),
                )
        except PhotoUploadError as e:
            _logger.error("crop failed: %s", e.message)
            QMessageBox.warning(self, "Crop failed", e.message)
            self.reject()
            return
        self._result_url = url
        self.accept()

    def done(self, result: int) -> None:  # type: ignore[override]
        self.canvas.controller.release()
        self.canvas.state._set_active(False)
        # The decoded photo is only needed while the dialog is open
        self._source = None
        _logger.debug("crop dialog closed, result=%s", result)
        super().done(result)

    def result_data_url(self) -> str | None:
        return self._result_url
