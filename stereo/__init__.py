"""Stereo module."""

from .geometry import ConsistencyCheck, PinholeModel, check_consistency, valid_disparity_mask
from .reconstructor import Reconstruction, StereoReconstructor

__all__ = [
    "ConsistencyCheck",
    "PinholeModel",
    "Reconstruction",
    "StereoReconstructor",
    "check_consistency",
    "valid_disparity_mask",
]
