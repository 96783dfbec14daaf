"""2D object tracking against learned appearance models."""

from .appearance import AppearanceModel
from .tracker import TrackOutcome, Tracker, build_tracker, track_model

__all__ = ["AppearanceModel", "TrackOutcome", "Tracker", "build_tracker", "track_model"]
