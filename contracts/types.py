"""Core data contracts for synchronization, tracking, stereo, and localization."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple

import numpy as np

Vector3 = Tuple[float, float, float]


class StreamId(str, Enum):
    LEFT_IMAGE = "left_image"
    LEFT_CAMERA_INFO = "left_camera_info"
    RIGHT_IMAGE = "right_image"
    RIGHT_CAMERA_INFO = "right_camera_info"
    DISPARITY = "disparity"


@dataclass(frozen=True)
class Rect:
    """Axis-aligned pixel rectangle (x, y, width, height)."""

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def full_frame(cls, width: int, height: int) -> "Rect":
        return cls(0, 0, int(width), int(height))

    @property
    def area(self) -> int:
        return max(self.width, 0) * max(self.height, 0)

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width * 0.5, self.y + self.height * 0.5)

    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def clamp(self, width: int, height: int) -> "Rect":
        """Return the intersection of this rectangle with a width x height image."""
        x1 = min(max(self.x, 0), width)
        y1 = min(max(self.y, 0), height)
        x2 = min(max(self.x + self.width, 0), width)
        y2 = min(max(self.y + self.height, 0), height)
        return Rect(x1, y1, x2 - x1, y2 - y1)

    def expand(self, margin: int) -> "Rect":
        return Rect(
            self.x - margin,
            self.y - margin,
            self.width + 2 * margin,
            self.height + 2 * margin,
        )

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.x, self.y, self.width, self.height)


@dataclass(frozen=True)
class RotatedRegion:
    """Rotated rectangle (center, size, angle in degrees)."""

    center: Tuple[float, float]
    size: Tuple[float, float]
    angle: float = 0.0

    @classmethod
    def from_rect(cls, rect: Rect) -> "RotatedRegion":
        return cls(center=rect.center, size=(float(rect.width), float(rect.height)), angle=0.0)

    def corners(self) -> list[Tuple[float, float]]:
        cx, cy = self.center
        half_w = self.size[0] * 0.5
        half_h = self.size[1] * 0.5
        theta = math.radians(self.angle)
        cos_t = math.cos(theta)
        sin_t = math.sin(theta)
        points = []
        for dx, dy in ((-half_w, -half_h), (half_w, -half_h), (half_w, half_h), (-half_w, half_h)):
            points.append((cx + dx * cos_t - dy * sin_t, cy + dx * sin_t + dy * cos_t))
        return points

    def bounding_rect(self) -> Rect:
        points = self.corners()
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        # Round away float noise from the trigonometry before flooring.
        x1 = int(math.floor(round(min(xs), 6)))
        y1 = int(math.floor(round(min(ys), 6)))
        x2 = int(math.ceil(round(max(xs), 6)))
        y2 = int(math.ceil(round(max(ys), 6)))
        return Rect(x1, y1, x2 - x1, y2 - y1)


@dataclass(frozen=True)
class CameraInfo:
    """Camera calibration; only the 3x4 projection matrix is consumed."""

    width: int
    height: int
    P: Tuple[float, ...]

    @property
    def fx(self) -> float:
        return float(self.P[0])

    @property
    def fy(self) -> float:
        return float(self.P[5])

    @property
    def cx(self) -> float:
        return float(self.P[2])

    @property
    def cy(self) -> float:
        return float(self.P[6])


@dataclass(frozen=True)
class DisparityImage:
    """Float disparity map plus the stereo parameters needed to triangulate it."""

    image: np.ndarray
    f: float
    T: float
    min_disparity: float
    max_disparity: float

    @property
    def width(self) -> int:
        return int(self.image.shape[1])

    @property
    def height(self) -> int:
        return int(self.image.shape[0])


@dataclass(frozen=True)
class FrameTuple:
    timestamp: float
    left_image: Optional[np.ndarray]
    right_image: Optional[np.ndarray]
    left_camera_info: Optional[CameraInfo]
    right_camera_info: Optional[CameraInfo]
    disparity: Optional[DisparityImage]

    def missing_fields(self) -> list[str]:
        names = (
            "left_image",
            "right_image",
            "left_camera_info",
            "right_camera_info",
            "disparity",
        )
        return [name for name in names if getattr(self, name) is None]


@dataclass(frozen=True)
class PointEstimate:
    X: float
    Y: float
    Z: float
    valid: bool = True

    @classmethod
    def origin(cls) -> "PointEstimate":
        return cls(0.0, 0.0, 0.0, valid=False)

    def as_tuple(self) -> Vector3:
        return (self.X, self.Y, self.Z)


@dataclass(frozen=True)
class BoundingBox3D:
    min_xyz: Vector3
    max_xyz: Vector3

    def as_tuple(self) -> Tuple[float, float, float, float, float, float]:
        return (*self.min_xyz, *self.max_xyz)


@dataclass(frozen=True)
class Blob:
    """Per-object tracking result for one frame tuple."""

    name: str
    timestamp: float
    frame_id: str = ""
    bounding_box_2d: Rect = Rect(0, 0, 0, 0)
    bounding_box_3d: Optional[BoundingBox3D] = None
    centroid_3d: Optional[Vector3] = None
    position_estimate: PointEstimate = PointEstimate.origin()
    depth_density: float = 0.0
    diagnostics: dict[str, Any] = field(default_factory=dict)

    @property
    def tracked(self) -> bool:
        return not self.bounding_box_2d.is_empty()
