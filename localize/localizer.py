"""Robust centroid and 3D extent of a reconstructed point set."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from configs.settings import LocalizerConfig
from contracts import BoundingBox3D, Rect, Vector3
from localize.outlier_filter import statistical_outlier_removal


@dataclass(frozen=True)
class Localization:
    centroid: Optional[Vector3]
    bounding_box: Optional[BoundingBox3D]
    filtered: np.ndarray
    raw_count: int

    @property
    def filtered_count(self) -> int:
        return int(self.filtered.shape[0])

    @property
    def located(self) -> bool:
        return self.centroid is not None


def depth_density(raw_count: int, box: Rect) -> float:
    """Share of the box pixels that produced a 3D point, before filtering."""
    if box.area <= 0:
        return 0.0
    return min(1.0, max(0.0, raw_count / float(box.area)))


class RobustLocalizer:
    def __init__(self, config: Optional[LocalizerConfig] = None) -> None:
        self._config = config or LocalizerConfig()

    def localize(self, points: np.ndarray) -> Localization:
        points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        if points.shape[0] == 0:
            return Localization(centroid=None, bounding_box=None, filtered=points, raw_count=0)

        filtered = statistical_outlier_removal(
            points, mean_k=self._config.mean_k, stddev_mul=self._config.stddev_mul
        )
        if filtered.shape[0] == 0:
            return Localization(
                centroid=None, bounding_box=None, filtered=filtered, raw_count=points.shape[0]
            )

        centroid = tuple(float(v) for v in filtered.mean(axis=0))
        box = BoundingBox3D(
            min_xyz=tuple(float(v) for v in filtered.min(axis=0)),
            max_xyz=tuple(float(v) for v in filtered.max(axis=0)),
        )
        return Localization(
            centroid=centroid, bounding_box=box, filtered=filtered, raw_count=points.shape[0]
        )
