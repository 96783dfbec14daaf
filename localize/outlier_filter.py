"""Statistical outlier removal for point sets.

Each point is scored by the mean distance to its k nearest neighbours.
Points scoring above mean + stddev_mul * stddev (over all points) are
outliers. This assumes one dominant cluster with sparse noise around it.
"""

from __future__ import annotations

import numpy as np
from scipy.spatial import cKDTree


def inlier_mask(points: np.ndarray, mean_k: int = 50, stddev_mul: float = 1.0) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    count = points.shape[0]
    if count < 2:
        return np.ones(count, dtype=bool)

    k = min(mean_k, count - 1)
    tree = cKDTree(points)
    # The first neighbour of every point is the point itself.
    distances, _ = tree.query(points, k=k + 1)
    mean_distances = distances[:, 1:].mean(axis=1)

    mean = float(mean_distances.mean())
    stddev = float(mean_distances.std(ddof=1))
    return mean_distances <= mean + stddev_mul * stddev


def statistical_outlier_removal(
    points: np.ndarray, mean_k: int = 50, stddev_mul: float = 1.0
) -> np.ndarray:
    points = np.asarray(points, dtype=np.float64).reshape(-1, 3)
    return points[inlier_mask(points, mean_k, stddev_mul)]
