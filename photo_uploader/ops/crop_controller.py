from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True, slots=True)
class CropRect:
    """Crop rect in display (container) coordinates, (x, y, w, h) form."""

    x: float
    y: float
    w: float
    h: float

    @property
    def x2(self) -> float:
        return self.x + self.w

    @property
    def y2(self) -> float:
        return self.y + self.h

    def contains(self, px: float, py: float) -> bool:
        return self.x <= px <= self.x2 and self.y <= py <= self.y2

    def moved_to(self, x: float, y: float) -> CropRect:
        return CropRect(x, y, self.w, self.h)


@dataclass(frozen=True, slots=True)
class DisplayGeometry:
    """Aspect-fit placement of an image inside a container."""

    width: float
    height: float
    offset_x: float
    offset_y: float
    scale: float


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def aspect_fit(image_w: float, image_h: float, container_w: float, container_h: float) -> DisplayGeometry:
    """Scale the image uniformly to fit the container and center it."""
    if image_w <= 0 or image_h <= 0:
        raise ValueError(f"invalid image size {image_w}x{image_h}")
    if container_w <= 0 or container_h <= 0:
        raise ValueError(f"invalid container size {container_w}x{container_h}")
    scale = min(container_w / image_w, container_h / image_h)
    w = image_w * scale
    h = image_h * scale
    return DisplayGeometry(
        width=w,
        height=h,
        offset_x=(container_w - w) / 2,
        offset_y=(container_h - h) / 2,
        scale=scale,
    )


def initial_crop_rect(container_w: float, container_h: float, ratio: float) -> CropRect:
    """Largest rect with width/height == ratio inside the container, centered."""
    if ratio <= 0:
        raise ValueError(f"aspect ratio must be positive, got {ratio}")
    if container_w / ratio <= container_h:
        w = float(container_w)
        h = container_w / ratio
    else:
        h = float(container_h)
        w = container_h * ratio
    return CropRect((container_w - w) / 2, (container_h - h) / 2, w, h)


def clamp_position(
    x: float, y: float, rect_w: float, rect_h: float, container_w: float, container_h: float
) -> tuple[float, float]:
    return (
        _clamp(x, 0.0, max(0.0, container_w - rect_w)),
        _clamp(y, 0.0, max(0.0, container_h - rect_h)),
    )


class DragState(enum.Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class CropBoxController:
    """Pan-only crop frame over a fixed image.

    State machine:
    - IDLE --press inside box--> DRAGGING (runs `on_enter_drag`)
    - DRAGGING --move--> DRAGGING (box follows pointer, clamped to container)
    - DRAGGING --release--> IDLE (runs `on_exit_drag`)

    Width and height are fixed by `reset()`; only x/y change afterwards.
    """

    def __init__(
        self,
        container_w: float,
        container_h: float,
        ratio: float,
        on_enter_drag: Callable[[], None] | None = None,
        on_exit_drag: Callable[[], None] | None = None,
    ) -> None:
        self._ratio = float(ratio)
        self._on_enter_drag = on_enter_drag
        self._on_exit_drag = on_exit_drag
        self._listeners: list[Callable[[CropRect], None]] = []
        self._state = DragState.IDLE
        self._offset = (0.0, 0.0)
        self._container = (float(container_w), float(container_h))
        self._rect = initial_crop_rect(container_w, container_h, self._ratio)

    @property
    def rect(self) -> CropRect:
        return self._rect

    @property
    def state(self) -> DragState:
        return self._state

    @property
    def ratio(self) -> float:
        return self._ratio

    @property
    def container(self) -> tuple[float, float]:
        return self._container

    def on_change(self, listener: Callable[[CropRect], None]) -> None:
        self._listeners.append(listener)

    def _set_rect(self, rect: CropRect) -> None:
        if rect == self._rect:
            return
        self._rect = rect
        for listener in list(self._listeners):
            listener(rect)

    def reset(self, container_w: float, container_h: float) -> None:
        """Re-center a fresh box (new image or container resize)."""
        if self._state is DragState.DRAGGING:
            self.release()
        self._container = (float(container_w), float(container_h))
        self._set_rect(initial_crop_rect(container_w, container_h, self._ratio))

    def press(self, px: float, py: float) -> bool:
        if self._state is DragState.DRAGGING:
            return True
        if not self._rect.contains(px, py):
            return False
        self._offset = (px - self._rect.x, py - self._rect.y)
        self._state = DragState.DRAGGING
        if self._on_enter_drag is not None:
            self._on_enter_drag()
        return True

    def move(self, px: float, py: float) -> CropRect:
        if self._state is not DragState.DRAGGING:
            return self._rect
        cw, ch = self._container
        x, y = clamp_position(
            px - self._offset[0],
            py - self._offset[1],
            self._rect.w,
            self._rect.h,
            cw,
            ch,
        )
        self._set_rect(self._rect.moved_to(x, y))
        return self._rect

    def release(self) -> None:
        if self._state is not DragState.DRAGGING:
            return
        self._state = DragState.IDLE
        if self._on_exit_drag is not None:
            self._on_exit_drag()
