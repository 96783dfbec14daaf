"""Shared data contracts for stereo blob tracking."""

from .types import (
    Blob,
    BoundingBox3D,
    CameraInfo,
    DisparityImage,
    FrameTuple,
    PointEstimate,
    Rect,
    RotatedRegion,
    StreamId,
    Vector3,
)

__all__ = [
    "Blob",
    "BoundingBox3D",
    "CameraInfo",
    "DisparityImage",
    "FrameTuple",
    "PointEstimate",
    "Rect",
    "RotatedRegion",
    "StreamId",
    "Vector3",
]
