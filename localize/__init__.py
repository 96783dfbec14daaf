"""Outlier-robust 3D localization."""

from .localizer import Localization, RobustLocalizer, depth_density
from .outlier_filter import inlier_mask, statistical_outlier_removal

__all__ = [
    "Localization",
    "RobustLocalizer",
    "depth_density",
    "inlier_mask",
    "statistical_outlier_removal",
]
