"""Tracking interfaces and tracking outcome containers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import numpy as np

from configs.settings import TrackerConfig
from contracts import Rect, RotatedRegion
from track.appearance import AppearanceModel


@dataclass(frozen=True)
class TrackOutcome:
    """Result of one tracking call.

    ``window`` is the search window to use on the next frame. It is the full
    frame whenever ``region`` is None.
    """

    region: Optional[RotatedRegion]
    window: Rect

    @classmethod
    def lost(cls, width: int, height: int) -> "TrackOutcome":
        return cls(region=None, window=Rect.full_frame(width, height))

    @property
    def found(self) -> bool:
        return self.region is not None


class Tracker(ABC):
    def __init__(self, config: Optional[TrackerConfig] = None) -> None:
        self._config = config or TrackerConfig()

    @abstractmethod
    def track(
        self, image: np.ndarray, model: AppearanceModel, window: Optional[Rect]
    ) -> TrackOutcome:
        """Locate the object in image, starting from window (None = full frame).

        Implementations must not mutate the model.
        """

    def start_window(self, image: np.ndarray, window: Optional[Rect]) -> Rect:
        height, width = image.shape[:2]
        full = Rect.full_frame(width, height)
        if window is None:
            return full
        clamped = window.clamp(width, height)
        return full if clamped.is_empty() else clamped


def track_model(
    tracker: Tracker, image: np.ndarray, model: AppearanceModel
) -> Optional[RotatedRegion]:
    """Track a model and carry its search window over to the next frame."""
    outcome = tracker.track(image, model, model.search_window)
    model.search_window = outcome.window if outcome.found else None
    return outcome.region


def build_tracker(config: Optional[TrackerConfig] = None) -> Tracker:
    config = config or TrackerConfig()
    if config.algorithm == "naive":
        from track.naive_tracker import NaiveTracker

        return NaiveTracker(config)
    from track.camshift_tracker import CamShiftTracker

    return CamShiftTracker(config)
