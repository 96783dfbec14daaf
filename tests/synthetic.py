"""Synthetic stereo rig looking at one green square."""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np

from contracts import CameraInfo, DisparityImage, FrameTuple, Rect, RotatedRegion
from track.appearance import AppearanceModel
from track.tracker import TrackOutcome, Tracker

WIDTH = 640
HEIGHT = 480
FX = FY = 500.0
CX = 320.0
CY = 240.0
FOCAL = 500.0
BASELINE = 0.1

GREEN = (0, 200, 0)
# Reds on both sides of the hue wrap: hue 2 and hue 176
RED_LOW = (0, 14, 200)
RED_HIGH = (30, 0, 200)


def make_camera_info() -> CameraInfo:
    return CameraInfo(
        width=WIDTH,
        height=HEIGHT,
        P=(FX, 0.0, CX, 0.0, 0.0, FY, CY, 0.0, 0.0, 0.0, 1.0, 0.0),
    )


def make_disparity(value: float, width: int = WIDTH, height: int = HEIGHT) -> DisparityImage:
    return DisparityImage(
        image=np.full((height, width), value, dtype=np.float32),
        f=FOCAL,
        T=BASELINE,
        min_disparity=0.0,
        max_disparity=128.0,
    )


def make_scene(rect: Rect, color=GREEN, width: int = WIDTH, height: int = HEIGHT) -> np.ndarray:
    image = np.zeros((height, width, 3), dtype=np.uint8)
    image[rect.y:rect.y + rect.height, rect.x:rect.x + rect.width] = color
    return image


def make_sample(size: int = 40, color=GREEN) -> np.ndarray:
    """Object sample: colored square on a black border."""
    sample = np.zeros((size + 10, size + 10, 3), dtype=np.uint8)
    sample[5:5 + size, 5:5 + size] = color
    return sample


def paint_two_tone(image: np.ndarray, rect: Rect, left=RED_LOW, right=RED_HIGH) -> np.ndarray:
    """Fill the left half of rect with one color and the right half with another."""
    half = rect.width // 2
    image[rect.y:rect.y + rect.height, rect.x:rect.x + half] = left
    image[rect.y:rect.y + rect.height, rect.x + half:rect.x + rect.width] = right
    return image


def make_frame(
    timestamp: float,
    left_image: np.ndarray,
    right_image: np.ndarray,
    disparity: Optional[DisparityImage],
) -> FrameTuple:
    return FrameTuple(
        timestamp=timestamp,
        left_image=left_image,
        right_image=right_image,
        left_camera_info=make_camera_info(),
        right_camera_info=make_camera_info(),
        disparity=disparity,
    )


class FixedBoxTracker(Tracker):
    """Returns a preset box per image, optionally per model; anything else is lost."""

    def __init__(self, boxes: Optional[Dict[Any, Rect]] = None) -> None:
        super().__init__()
        self.boxes: Dict[Any, Rect] = dict(boxes or {})
        self.calls = 0

    def set_box(self, image: np.ndarray, rect: Rect, model: Optional[AppearanceModel] = None) -> None:
        key = id(image) if model is None else (id(image), id(model))
        self.boxes[key] = rect

    def track(self, image: np.ndarray, model: AppearanceModel, window: Optional[Rect]) -> TrackOutcome:
        self.calls += 1
        height, width = image.shape[:2]
        rect = self.boxes.get((id(image), id(model)), self.boxes.get(id(image)))
        if rect is None:
            return TrackOutcome.lost(width, height)
        return TrackOutcome(region=RotatedRegion.from_rect(rect), window=rect)


