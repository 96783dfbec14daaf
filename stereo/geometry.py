"""Pinhole triangulation and left/right consistency checks."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from configs.settings import StereoConfig
from contracts import CameraInfo, DisparityImage, Rect, Vector3
from exceptions import CalibrationError


@dataclass(frozen=True)
class PinholeModel:
    """Left camera intrinsics plus the disparity image's focal length x baseline."""

    fx: float
    fy: float
    cx: float
    cy: float
    focal_baseline: float

    @classmethod
    def from_calibration(cls, camera_info: CameraInfo, disparity: DisparityImage) -> "PinholeModel":
        if len(camera_info.P) != 12:
            raise CalibrationError(f"Projection matrix must have 12 entries, got {len(camera_info.P)}")
        if camera_info.fx == 0 or camera_info.fy == 0:
            raise CalibrationError("Projection matrix has a zero focal length")
        return cls(
            fx=camera_info.fx,
            fy=camera_info.fy,
            cx=camera_info.cx,
            cy=camera_info.cy,
            focal_baseline=float(disparity.f) * float(disparity.T),
        )

    def project(self, u: float, v: float, disparity: float) -> Optional[Vector3]:
        """Triangulate one pixel; None when the disparity is zero or not finite."""
        if disparity == 0 or not math.isfinite(disparity):
            return None
        z = self.focal_baseline / disparity
        x = (u - self.cx) / self.fx * z
        y = (v - self.cy) / self.fy * z
        return (float(x), float(y), float(z))

    def project_many(self, us: np.ndarray, vs: np.ndarray, disparities: np.ndarray) -> np.ndarray:
        """Vectorized project(); callers must have removed zero disparities."""
        z = self.focal_baseline / disparities
        x = (us - self.cx) / self.fx * z
        y = (vs - self.cy) / self.fy * z
        return np.column_stack((x, y, z)).astype(np.float64)


def valid_disparity_mask(values: np.ndarray, min_disparity: float, max_disparity: float) -> np.ndarray:
    """True where a disparity is finite, inside [min, max] and non-zero."""
    with np.errstate(invalid="ignore"):
        return (
            np.isfinite(values)
            & (values >= min_disparity)
            & (values <= max_disparity)
            & (values != 0)
        )


@dataclass(frozen=True)
class ConsistencyCheck:
    vertical_offset_px: float
    width_ratio: float
    consistent: bool


def check_consistency(left: Rect, right: Rect, config: Optional[StereoConfig] = None) -> ConsistencyCheck:
    """Decide whether the left and right boxes can be the same object.

    The rows of the box centers must agree within the vertical tolerance and
    the width ratio left/right must lie within [min_width_ratio, max_width_ratio].
    """
    config = config or StereoConfig()
    offset = right.center[1] - left.center[1]
    ratio = left.width / float(right.width) if right.width > 0 else math.inf
    consistent = (
        -config.max_vertical_offset_px <= offset <= config.max_vertical_offset_px
        and config.min_width_ratio <= ratio <= config.max_width_ratio
    )
    return ConsistencyCheck(vertical_offset_px=offset, width_ratio=ratio, consistent=consistent)
