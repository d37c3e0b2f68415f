"""Widget-free photo crop pipeline.

validate -> read -> decode -> crop frame -> resample -> encode.
A stage that fails raises a PhotoUploadError and nothing is committed.
"""

from __future__ import annotations

from typing import Callable

from photo_uploader.crop.resample import resample
from photo_uploader.decoder import SourceImage, decode_image_bytes
from photo_uploader.encoder import encode_data_url
from photo_uploader.logger import get_logger
from photo_uploader.ops.crop_controller import CropBoxController
from photo_uploader.settings_manager import PhotoConfig
from photo_uploader.validator import (
    CandidateFile,
    candidate_from_path,
    read_candidate_bytes,
    validate_selection,
)

_logger = get_logger("pipeline")


class PhotoCropPipeline:
    def __init__(self, config: PhotoConfig | None = None):
        self.config = (config or PhotoConfig()).validated()

    def validate(self, candidate: CandidateFile) -> CandidateFile:
        return validate_selection(candidate, self.config.max_size_mb)

    def accept(self, candidate: CandidateFile) -> SourceImage:
        self.validate(candidate)
        source = decode_image_bytes(read_candidate_bytes(candidate))
        _logger.info("accepted %s (%dx%d)", candidate.name, source.width, source.height)
        return source

    def start_crop(
        self,
        source: SourceImage,
        container_w: float | None = None,
        container_h: float | None = None,
        on_enter_drag: Callable[[], None] | None = None,
        on_exit_drag: Callable[[], None] | None = None,
    ) -> CropBoxController:
        cw = container_w if container_w is not None else self.config.container_width
        ch = container_h if container_h is not None else self.config.container_height
        return CropBoxController(
            cw,
            ch,
            self.config.aspect_ratio,
            on_enter_drag=on_enter_drag,
            on_exit_drag=on_exit_drag,
        )

    def confirm(
        self,
        source: SourceImage,
        controller: CropBoxController,
        container_w: float | None = None,
        container_h: float | None = None,
    ) -> str:
        """Resample the current crop frame and return it as a data URL.

        `container_w`/`container_h` are the container's size at confirm time;
        they default to the controller's own container.
        """
        cw, ch = controller.container
        if container_w is not None and container_h is not None:
            cw, ch = container_w, container_h
        image = resample(
            source,
            controller.rect,
            cw,
            ch,
            self.config.output_width,
            self.config.output_height,
        )
        url = encode_data_url(image, self.config.output_format, self.config.output_quality)
        _logger.info("photo cropped to %dx%d", image.width(), image.height())
        return url

    def crop_candidate(self, candidate: CandidateFile) -> str:
        source = self.accept(candidate)
        return self.confirm(source, self.start_crop(source))

    def crop_file(self, path: str) -> str:
        """Run the whole chain on `path` with the initial centered crop frame."""
        return self.crop_candidate(candidate_from_path(path))
