"""Stream synchronization module."""

from .synchronizer import (
    ApproximateTimeSynchronizer,
    ExactTimeSynchronizer,
    StreamSynchronizer,
    SyncCounters,
    build_synchronizer,
)
from .watchdog import DesyncReport, DesyncWatchdog

__all__ = [
    "ApproximateTimeSynchronizer",
    "DesyncReport",
    "DesyncWatchdog",
    "ExactTimeSynchronizer",
    "StreamSynchronizer",
    "SyncCounters",
    "build_synchronizer",
]
