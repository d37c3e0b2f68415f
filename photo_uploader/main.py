import argparse
import os
import sys
from dataclasses import replace
from pathlib import Path

from PySide6.QtGui import QGuiApplication
from PySide6.QtWidgets import QApplication, QLabel, QMainWindow, QVBoxLayout, QWidget

from photo_uploader.errors import PhotoUploadError
from photo_uploader.logger import get_logger
from photo_uploader.pipeline import PhotoCropPipeline
from photo_uploader.settings_manager import SettingsManager
from photo_uploader.ui_photo_uploader import PhotoUploader

_BASE_DIR = Path(getattr(sys, "_MEIPASS", Path(__file__).resolve().parent))


# --- CLI logging options -----------------------------------------------------
# To prevent Qt from exiting due to unknown options, we preemptively parse
# our own options, reflect them in environment variables (PHOTO_UPLOADER_LOG_LEVEL,
# PHOTO_UPLOADER_LOG_CATS), and return the remaining arguments.


def _apply_cli_logging_options(argv: list[str]) -> list[str]:
    parser = argparse.ArgumentParser(description="Photo uploader", add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args(argv)
    if args.log_level:
        os.environ["PHOTO_UPLOADER_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["PHOTO_UPLOADER_LOG_CATS"] = args.log_cats
    return remaining


def _parse_size(text: str) -> tuple[int, int]:
    try:
        w_str, h_str = text.lower().split("x", 1)
        w, h = int(w_str), int(h_str)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {text!r}") from e
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError(f"size must be positive, got {text!r}")
    return w, h


class PhotoWindow(QMainWindow):
    """Standalone host for the photo uploader."""

    def __init__(self, settings: SettingsManager):
        super().__init__()
        self.setWindowTitle("Resume photo")
        self._settings = settings

        central = QWidget()
        layout = QVBoxLayout(central)
        self.uploader = PhotoUploader(central, photo=settings.get("photo", "") or "", settings=settings)
        layout.addWidget(self.uploader)
        self.status = QLabel()
        layout.addWidget(self.status)
        layout.addStretch()
        self.setCentralWidget(central)

        self.uploader.photoChanged.connect(self._on_photo_changed)
        self._update_status(self.uploader.photo)

    def _on_photo_changed(self, photo: str) -> None:
        self._settings.set("photo", photo)
        self._update_status(photo)

    def _update_status(self, photo: str) -> None:
        self.status.setText(f"Photo data URL: {len(photo)} chars" if photo else "No photo")


def _run_crop(argv: list[str], settings: SettingsManager) -> int:
    logger = get_logger("main")
    parser = argparse.ArgumentParser(prog="photo-uploader crop", description="Crop a photo with the centered frame")
    parser.add_argument("input", help="JPG/PNG file to crop")
    parser.add_argument("-o", "--output", help="Write the data URL here instead of stdout")
    parser.add_argument("--container", type=_parse_size, help="Crop container size, e.g. 400x400")
    args = parser.parse_args(argv)

    os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    app = QGuiApplication.instance() or QGuiApplication([sys.argv[0]])  # noqa: F841

    config = settings.photo_config()
    if args.container:
        config = replace(config, container_width=args.container[0], container_height=args.container[1])

    try:
        url = PhotoCropPipeline(config).crop_file(args.input)
    except PhotoUploadError as e:
        logger.error("crop failed for %s: %s", args.input, e.message)
        print(f"error: {e.message}", file=sys.stderr)
        return 2

    if args.output:
        Path(args.output).write_text(url, encoding="utf-8")
        logger.info("data URL written to %s", args.output)
    else:
        print(url)
    return 0


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    if argv is None:
        argv = sys.argv

    remaining = _apply_cli_logging_options(argv[1:])
    settings = SettingsManager((_BASE_DIR / "settings.json").as_posix())

    if remaining and remaining[0] == "crop":
        return _run_crop(remaining[1:], settings)

    app = QApplication([argv[0], *remaining])
    window = PhotoWindow(settings)
    window.show()
    get_logger("main").debug("photo window shown")
    return app.exec()


if __name__ == "__main__":
    sys.exit(run())
