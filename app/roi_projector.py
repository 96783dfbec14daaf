"""Standalone projection of a given left-image ROI into colored point clouds.

Unlike the orchestrator, the ROI here comes from an external 2D tracker
together with crops of the color image and of a foreground mask. The raw
cloud keeps every pixel with a valid disparity; the filtered cloud keeps
only the pixels the mask marks as foreground. Both are outlier-filtered.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from configs.settings import AppConfig
from contracts import Blob, CameraInfo, DisparityImage, Rect, Vector3
from localize.outlier_filter import inlier_mask
from log_config.logger import get_logger
from stereo.geometry import PinholeModel, valid_disparity_mask
from track.appearance import to_bgr

logger = get_logger(__name__)


@dataclass(frozen=True)
class RoiProjection:
    raw_points: np.ndarray
    raw_colors: np.ndarray
    filtered_points: np.ndarray
    filtered_colors: np.ndarray
    centroid: Optional[Vector3]
    blob: Blob


class RoiProjector:
    def __init__(self, name: str, config: Optional[AppConfig] = None) -> None:
        self._name = name
        self._config = config or AppConfig()

    def project(
        self,
        camera_info: CameraInfo,
        bgr_image: np.ndarray,
        mono_mask: np.ndarray,
        disparity: DisparityImage,
        roi: Rect,
        timestamp: float,
    ) -> RoiProjection:
        """Project roi; bgr_image and mono_mask are crops of the roi itself."""
        pinhole = PinholeModel.from_calibration(camera_info, disparity)
        bgr_image = to_bgr(np.asarray(bgr_image))
        mono_mask = np.asarray(mono_mask)
        # Only pixels covered by the disparity and by both crops are usable
        crop_height = min(bgr_image.shape[0], mono_mask.shape[0])
        crop_width = min(bgr_image.shape[1], mono_mask.shape[1])
        region = roi.clamp(disparity.width, disparity.height)
        region = Rect(
            region.x,
            region.y,
            min(region.width, crop_width - (region.x - roi.x)),
            min(region.height, crop_height - (region.y - roi.y)),
        )

        points = np.empty((0, 3), dtype=np.float64)
        colors = np.empty((0, 3), dtype=np.uint8)
        foreground = np.empty(0, dtype=bool)
        if not region.is_empty():
            values = np.asarray(
                disparity.image[region.y:region.y + region.height, region.x:region.x + region.width],
                dtype=np.float64,
            )
            rows, cols = np.nonzero(
                valid_disparity_mask(values, disparity.min_disparity, disparity.max_disparity)
            )
            local_rows = rows + (region.y - roi.y)
            local_cols = cols + (region.x - roi.x)
            points = pinhole.project_many(
                cols.astype(np.float64) + region.x,
                rows.astype(np.float64) + region.y,
                values[rows, cols],
            )
            colors = bgr_image[local_rows, local_cols].reshape(-1, 3).astype(np.uint8)
            foreground = mono_mask[local_rows, local_cols] != 0

        mean_k = self._config.localizer.mean_k
        stddev_mul = self._config.localizer.stddev_mul
        raw_keep = inlier_mask(points, mean_k, stddev_mul)
        raw_points, raw_colors = points[raw_keep], colors[raw_keep]

        fg_points, fg_colors = points[foreground], colors[foreground]
        fg_keep = inlier_mask(fg_points, mean_k, stddev_mul)
        filtered_points, filtered_colors = fg_points[fg_keep], fg_colors[fg_keep]

        centroid: Optional[Vector3] = None
        if filtered_points.shape[0]:
            centroid = tuple(float(v) for v in filtered_points.mean(axis=0))
        density = filtered_points.shape[0] / float(roi.area) if roi.area else 0.0
        logger.debug(
            f"Projected {self._name}: {raw_points.shape[0]} raw, {filtered_points.shape[0]} filtered points"
        )

        blob = Blob(
            name=self._name,
            timestamp=timestamp,
            frame_id=self._config.publish.frame_id,
            bounding_box_2d=roi,
            centroid_3d=centroid,
            depth_density=min(1.0, density),
        )
        return RoiProjection(
            raw_points=raw_points,
            raw_colors=raw_colors,
            filtered_points=filtered_points,
            filtered_colors=filtered_colors,
            centroid=centroid,
            blob=blob,
        )
