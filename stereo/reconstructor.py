"""Stereo 3D reconstruction of a tracked 2D box."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from configs.settings import StereoConfig
from contracts import DisparityImage, FrameTuple, PointEstimate, Rect
from log_config.logger import get_logger
from stereo.geometry import ConsistencyCheck, PinholeModel, check_consistency, valid_disparity_mask

logger = get_logger(__name__)


@dataclass(frozen=True)
class Reconstruction:
    points: np.ndarray
    estimate: PointEstimate
    consistency: ConsistencyCheck

    @property
    def point_count(self) -> int:
        return int(self.points.shape[0])


def empty_points() -> np.ndarray:
    return np.empty((0, 3), dtype=np.float64)


def dense_points(disparity: DisparityImage, pinhole: PinholeModel, box: Rect) -> np.ndarray:
    """Triangulate every pixel of box that has a valid disparity, row by row."""
    region = box.clamp(disparity.width, disparity.height)
    if region.is_empty():
        return empty_points()
    values = np.asarray(
        disparity.image[region.y:region.y + region.height, region.x:region.x + region.width],
        dtype=np.float64,
    )
    mask = valid_disparity_mask(values, disparity.min_disparity, disparity.max_disparity)
    rows, cols = np.nonzero(mask)
    if rows.size == 0:
        return empty_points()
    return pinhole.project_many(
        cols.astype(np.float64) + region.x,
        rows.astype(np.float64) + region.y,
        values[rows, cols],
    )


class StereoReconstructor:
    def __init__(self, config: Optional[StereoConfig] = None) -> None:
        self._config = config or StereoConfig()

    def reconstruct(self, frame: FrameTuple, left_box: Rect, right_box: Rect) -> Reconstruction:
        """Build the dense point set of left_box and a single-point estimate.

        The single-point estimate triangulates the left box origin with the
        disparity of the box centers. It is the origin whenever the left and
        right boxes fail the consistency check. The dense point set only
        depends on the left box and the disparity map.
        """
        pinhole = PinholeModel.from_calibration(frame.left_camera_info, frame.disparity)
        check = check_consistency(left_box, right_box, self._config)

        estimate = PointEstimate.origin()
        if not check.consistent:
            logger.debug(
                f"Object on left and right cameras not aligned or too different in size: "
                f"vertical offset={check.vertical_offset_px:.1f}px width ratio={check.width_ratio:.2f} "
                f"left={left_box.center} {left_box.width}x{left_box.height} "
                f"right={right_box.center} {right_box.width}x{right_box.height}"
            )
        else:
            center_disparity = left_box.center[0] - right_box.center[0]
            point = pinhole.project(left_box.x, left_box.y, center_disparity)
            if point is not None:
                estimate = PointEstimate(*point)

        points = dense_points(frame.disparity, pinhole, left_box)
        return Reconstruction(points=points, estimate=estimate, consistency=check)
