from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from typing import Any

from .logger import get_logger

_logger = get_logger("settings")

OUTPUT_FORMATS = ("jpeg", "png")


@dataclass(frozen=True, slots=True)
class PhotoConfig:
    """Pipeline parameters for one upload."""

    max_size_mb: float = 10
    output_width: int = 400
    output_height: int = 533
    output_format: str = "jpeg"
    output_quality: int = 90
    container_width: int = 400
    container_height: int = 400

    @property
    def aspect_ratio(self) -> float:
        return self.output_width / self.output_height

    def validated(self) -> PhotoConfig:
        if self.max_size_mb <= 0:
            raise ValueError(f"max_size_mb must be positive, got {self.max_size_mb}")
        if self.output_width <= 0 or self.output_height <= 0:
            raise ValueError(f"invalid output size {self.output_width}x{self.output_height}")
        if self.container_width <= 0 or self.container_height <= 0:
            raise ValueError(f"invalid container size {self.container_width}x{self.container_height}")
        fmt = str(self.output_format).lower()
        if fmt == "jpg":
            fmt = "jpeg"
        if fmt not in OUTPUT_FORMATS:
            raise ValueError(f"unsupported output format: {self.output_format}")
        if not 0 <= int(self.output_quality) <= 100:
            raise ValueError(f"output_quality must be in 0..100, got {self.output_quality}")
        return replace(self, output_format=fmt, output_quality=int(self.output_quality))


class SettingsManager:
    def __init__(self, settings_path: str):
        self.settings_path = settings_path
        self._settings: dict[str, Any] = {}
        self.load()

    DEFAULTS: dict[str, Any] = {
        "max_size_mb": 10,
        "output_width": 400,
        "output_height": 533,
        "output_format": "jpeg",
        "output_quality": 90,
        "crop_container_width": 400,
        "crop_container_height": 400,
    }

    def load(self) -> None:
        try:
            if os.path.exists(self.settings_path):
                with open(self.settings_path, encoding="utf-8") as f:
                    data = json.load(f)
                    if isinstance(data, dict):
                        self._settings = data
                        _logger.debug("settings loaded: %s", self.settings_path)
                        return
        except Exception as e:
            _logger.warning("settings load failed: %s", e)
        self._settings = {}

    def save(self) -> None:
        try:
            parent = os.path.dirname(self.settings_path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            with open(self.settings_path, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, ensure_ascii=False, indent=2)
            _logger.debug("settings saved: %s", self.settings_path)
        except Exception as e:
            _logger.error("settings save failed: %s", e)

    def get(self, key: str, default: Any = None) -> Any:
        if key in self._settings:
            return self._settings[key]
        if default is not None:
            return default
        return self.DEFAULTS.get(key)

    def has(self, key: str) -> bool:
        return key in self._settings

    def set(self, key: str, value: Any) -> None:
        if key == "last_open_dir" and isinstance(value, str):
            value = self._normalize_dir(value)
        self._settings[key] = value
        self.save()

    @property
    def data(self) -> dict[str, Any]:
        return self._settings

    @property
    def last_open_dir(self) -> str | None:
        val = self.get("last_open_dir")
        return val if isinstance(val, str) and os.path.isdir(val) else None

    @staticmethod
    def _normalize_dir(path: str) -> str:
        p = os.path.abspath(os.path.expanduser(path))
        if os.path.isfile(p):
            p = os.path.dirname(p)
        return os.path.realpath(p)

    def photo_config(self) -> PhotoConfig:
        """Build the pipeline config, falling back to defaults on bad values."""
        try:
            config = PhotoConfig(
                max_size_mb=float(self.get("max_size_mb")),
                output_width=int(self.get("output_width")),
                output_height=int(self.get("output_height")),
                output_format=str(self.get("output_format")),
                output_quality=int(self.get("output_quality")),
                container_width=int(self.get("crop_container_width")),
                container_height=int(self.get("crop_container_height")),
            )
            return config.validated()
        except (TypeError, ValueError) as e:
            _logger.warning("invalid photo settings, using defaults: %s", e)
            return PhotoConfig()
