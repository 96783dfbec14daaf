from __future__ import annotations

import numpy as np
import pytest

from configs.settings import LocalizerConfig
from contracts import Rect
from localize import RobustLocalizer, depth_density, inlier_mask, statistical_outlier_removal


def cluster(count: int = 200, center=(1.0, 0.2, 3.0), spread: float = 0.01, seed: int = 7) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return np.asarray(center) + rng.normal(scale=spread, size=(count, 3))


def test_far_outliers_are_removed() -> None:
    points = np.vstack([cluster(), [[5.0, 5.0, 9.0], [-4.0, 2.0, 0.5]]])
    mask = inlier_mask(points)

    assert not mask[-1] and not mask[-2]
    assert mask[:-2].sum() > 150


def test_filtering_never_adds_points() -> None:
    points = cluster(count=120)
    filtered = statistical_outlier_removal(points, mean_k=10, stddev_mul=0.5)
    assert filtered.shape[0] <= points.shape[0]
    source = {tuple(p) for p in points}
    assert all(tuple(p) in source for p in filtered)


def test_larger_multiplier_keeps_at_least_as_many_points() -> None:
    points = cluster(count=150, seed=3)
    counts = [statistical_outlier_removal(points, 20, mul).shape[0] for mul in (0.5, 1.0, 2.0, 4.0)]
    assert counts == sorted(counts)


@pytest.mark.parametrize("count", [0, 1])
def test_tiny_inputs_are_kept(count: int) -> None:
    points = cluster(count=count)
    assert statistical_outlier_removal(points).shape == (count, 3)


def test_mean_k_larger_than_point_count() -> None:
    points = cluster(count=10)
    assert inlier_mask(points, mean_k=50).shape == (10,)


def test_localize_centroid_and_box() -> None:
    points = np.vstack([cluster(), [[5.0, 5.0, 9.0]]])
    localization = RobustLocalizer(LocalizerConfig()).localize(points)

    assert localization.located
    assert localization.raw_count == 201
    assert localization.filtered_count < 201
    assert localization.centroid == pytest.approx((1.0, 0.2, 3.0), abs=0.01)
    box = localization.bounding_box
    assert all(lo <= c <= hi for lo, c, hi in zip(box.min_xyz, localization.centroid, box.max_xyz))
    assert box.max_xyz[2] < 5.0


def test_localize_empty_input() -> None:
    localization = RobustLocalizer().localize(np.empty((0, 3)))
    assert not localization.located
    assert localization.bounding_box is None
    assert localization.raw_count == 0


@pytest.mark.parametrize(
    "raw_count,box,expected",
    [
        (0, Rect(0, 0, 10, 10), 0.0),
        (50, Rect(0, 0, 10, 10), 0.5),
        (100, Rect(0, 0, 10, 10), 1.0),
        (10, Rect(0, 0, 0, 10), 0.0),
    ],
)
def test_depth_density(raw_count: int, box: Rect, expected: float) -> None:
    assert depth_density(raw_count, box) == expected
