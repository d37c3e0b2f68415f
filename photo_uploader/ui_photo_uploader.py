"""Profile photo slot for the resume editor.

Shows the current photo (or an "Add photo" placeholder), lets the user pick a
JPG/PNG file, crop it and emits the result as a data URL through
`photoChanged`. An empty string means the photo was removed.
"""

from __future__ import annotations

import os

from PySide6.QtCore import QSize, Qt, QTimer, Signal
from PySide6.QtGui import QPixmap
from PySide6.QtWidgets import (
    QDialog,
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from .crop.ui_crop import CropDialog
from .decoder import SourceImage
from .encoder import data_url_to_qimage
from .errors import PhotoUploadError
from .loader import PhotoLoader
from .logger import get_logger
from .pipeline import PhotoCropPipeline
from .settings_manager import PhotoConfig, SettingsManager
from .validator import CandidateFile, candidate_from_path, read_candidate_bytes

_logger = get_logger("ui_photo_uploader")

THUMB_WIDTH = 120
NOTICE_TIMEOUT_MS = 3000
FILE_FILTER = "Images (*.jpg *.jpeg *.png)"


class _PhotoSlot(QLabel):
    clicked = Signal()

    def mousePressEvent(self, event) -> None:  # type: ignore
        if event.button() == Qt.MouseButton.LeftButton:
            self.clicked.emit()
            event.accept()
            return
        super().mousePressEvent(event)


class PhotoPreviewDialog(QDialog):
    """Shows the stored photo at up to 300px wide."""

    MAX_WIDTH = 300

    def __init__(self, parent: QWidget | None, photo_url: str):
        super().__init__(parent)
        self.setWindowTitle("Photo preview")
        layout = QVBoxLayout(self)
        self.image_label = QLabel()
        self.image_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        pixmap = QPixmap.fromImage(data_url_to_qimage(photo_url))
        if pixmap.width() > self.MAX_WIDTH:
            pixmap = pixmap.scaledToWidth(self.MAX_WIDTH, Qt.TransformationMode.SmoothTransformation)
        self.image_label.setPixmap(pixmap)
        layout.addWidget(self.image_label)


class PhotoUploader(QWidget):
    photoChanged = Signal(str)
    notified = Signal(str, str)  # level ("success" | "error"), message

    def __init__(
        self,
        parent: QWidget | None = None,
        photo: str = "",
        config: PhotoConfig | None = None,
        settings: SettingsManager | None = None,
    ):
        super().__init__(parent)
        self._settings = settings
        if config is None and settings is not None:
            config = settings.photo_config()
        self._pipeline = PhotoCropPipeline(config)
        self._photo = ""
        self._pending_name: str | None = None
        self._request_id: int | None = None
        self._crop_dialog: CropDialog | None = None

        self._loader = PhotoLoader(parent=self)
        self._loader.photo_decoded.connect(self._on_photo_decoded)
        self._loader.photo_failed.connect(self._on_photo_failed)

        self._notice_timer = QTimer(self)
        self._notice_timer.setSingleShot(True)
        self._notice_timer.timeout.connect(self._clear_notice)

        self._setup_ui()
        self.set_photo(photo)

    @property
    def config(self) -> PhotoConfig:
        return self._pipeline.config

    @property
    def photo(self) -> str:
        return self._photo

    def _thumb_size(self) -> QSize:
        return QSize(THUMB_WIDTH, round(THUMB_WIDTH / self.config.aspect_ratio))

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(4)

        self.slot = _PhotoSlot()
        self.slot.setFixedSize(self._thumb_size())
        self.slot.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.slot.setCursor(Qt.CursorShape.PointingHandCursor)
        self.slot.setStyleSheet("border: 1px solid #d9d9d9; background-color: #f5f5f5; color: #999;")
        self.slot.setToolTip("Click to upload a photo")
        self.slot.clicked.connect(self.open_file_dialog)
        layout.addWidget(self.slot)

        actions = QHBoxLayout()
        self.preview_btn = QPushButton("Preview")
        self.preview_btn.clicked.connect(self.open_preview)
        actions.addWidget(self.preview_btn)
        self.delete_btn = QPushButton("Delete")
        self.delete_btn.clicked.connect(self.delete_photo)
        actions.addWidget(self.delete_btn)
        layout.addLayout(actions)

        self.notice = QLabel()
        self.notice.setVisible(False)
        layout.addWidget(self.notice)

    # ---- value ----
    def set_photo(self, photo: str) -> None:
        """Show `photo` without emitting photoChanged."""
        self._photo = photo or ""
        self._refresh_slot()

    def _commit_photo(self, photo: str) -> None:
        self.set_photo(photo)
        self.photoChanged.emit(self._photo)

    def _refresh_slot(self) -> None:
        has_photo = bool(self._photo)
        self.preview_btn.setVisible(has_photo)
        self.delete_btn.setVisible(has_photo)
        if not has_photo:
            self.slot.setPixmap(QPixmap())
            self.slot.setText("+\nAdd photo")
            return
        try:
            pixmap = QPixmap.fromImage(data_url_to_qimage(self._photo))
        except PhotoUploadError as e:
            _logger.warning("stored photo could not be displayed: %s", e.message)
            self.slot.setPixmap(QPixmap())
            self.slot.setText("Invalid photo")
            return
        self.slot.setText("")
        self.slot.setPixmap(
            pixmap.scaled(
                self.slot.size(),
                Qt.AspectRatioMode.KeepAspectRatioByExpanding,
                Qt.TransformationMode.SmoothTransformation,
            )
        )

    # ---- notifications ----
    def _notify(self, level: str, message: str) -> None:
        color = "#389e0d" if level == "success" else "#cf1322"
        self.notice.setStyleSheet(f"color: {color};")
        self.notice.setText(message)
        self.notice.setVisible(True)
        self._notice_timer.start(NOTICE_TIMEOUT_MS)
        self.notified.emit(level, message)

    def _clear_notice(self) -> None:
        self.notice.clear()
        self.notice.setVisible(False)

    # ---- upload flow ----
    def open_file_dialog(self) -> None:
        start_dir = (self._settings.last_open_dir if self._settings else None) or ""
        path, _ = QFileDialog.getOpenFileName(self, "Select photo", start_dir, FILE_FILTER)
        if not path:
            return
        if self._settings is not None:
            self._settings.set("last_open_dir", os.path.dirname(path))
        self.load_file(path)

    def load_file(self, path: str) -> None:
        try:
            candidate = candidate_from_path(path)
        except PhotoUploadError as e:
            self._notify("error", e.message)
            return
        self.load_candidate(candidate)

    def load_candidate(self, candidate: CandidateFile) -> None:
        """Validate `candidate` and start decoding it; rejected files are ignored."""
        try:
            self._pipeline.validate(candidate)
            data = read_candidate_bytes(candidate)
        except PhotoUploadError as e:
            self._notify("error", e.message)
            return
        self._pending_name = candidate.name
        self._request_id = self._loader.request_load(data)

    def cancel_pending(self) -> None:
        self._loader.cancel()
        self._request_id = None
        self._pending_name = None

    def _on_photo_decoded(self, request_id: int, source: SourceImage) -> None:
        if request_id != self._request_id:
            _logger.debug("ignoring stale decode id=%s", request_id)
            return
        self._request_id = None
        self.open_crop_dialog(source)

    def _on_photo_failed(self, request_id: int, message: str) -> None:
        if request_id != self._request_id:
            return
        _logger.warning("decode failed for %s: %s", self._pending_name, message)
        self._request_id = None
        self._pending_name = None
        self._notify("error", message)

    def open_crop_dialog(self, source: SourceImage) -> CropDialog:
        dlg = CropDialog(self, source, self._pipeline)
        dlg.finished.connect(self._on_crop_finished)
        self._crop_dialog = dlg
        dlg.open()
        return dlg

    def _on_crop_finished(self, result: int) -> None:
        dlg = self._crop_dialog
        self._crop_dialog = None
        self._pending_name = None
        if dlg is None:
            return
        url = dlg.result_data_url()
        dlg.deleteLater()
        if result != QDialog.DialogCode.Accepted.value or not url:
            _logger.debug("crop cancelled; photo unchanged")
            return
        self._commit_photo(url)
        self._notify("success", "Photo uploaded")

    def delete_photo(self) -> None:
        if not self._photo:
            return
        self._commit_photo("")
        self._notify("success", "Photo removed")

    def open_preview(self) -> PhotoPreviewDialog | None:
        if not self._photo:
            return None
        try:
            dlg = PhotoPreviewDialog(self, self._photo)
        except PhotoUploadError as e:
            self._notify("error", e.message)
            return None
        dlg.open()
        return dlg

    def closeEvent(self, event) -> None:  # type: ignore
        self._loader.shutdown()
        super().closeEvent(event)
