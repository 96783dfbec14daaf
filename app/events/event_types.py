"""Event types published by the tracking pipeline.

All events are immutable dataclasses that flow through the EventBus.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from contracts import Blob


@dataclass(frozen=True)
class BlobTrackedEvent:
    """Published once per registered object for every processed frame tuple.

    Attributes:
        blob: Tracking result, degenerate when the object was not found
    """
    blob: Blob


@dataclass(frozen=True)
class BlobCountEvent:
    """Published once per processed frame tuple.

    Attributes:
        timestamp: Frame tuple timestamp
        count: Number of objects processed for this tuple
    """
    timestamp: float
    count: int


@dataclass(frozen=True)
class TrackedImageEvent:
    """Left image annotated with tracked boxes and names.

    Only built when at least one handler is subscribed.

    Attributes:
        timestamp: Frame tuple timestamp
        frame_id: Camera frame of the image
        image: BGR image with overlays
    """
    timestamp: float
    frame_id: str
    image: np.ndarray


@dataclass(frozen=True)
class PointCloudEvent:
    """Outlier-filtered 3D points of one object.

    Only built when at least one handler is subscribed.

    Attributes:
        name: Object name
        timestamp: Frame tuple timestamp
        frame_id: Camera frame of the points
        points: (N, 3) float array
    """
    name: str
    timestamp: float
    frame_id: str
    points: np.ndarray
