"""Registry of tracked objects, one left/right model pair per name."""

from __future__ import annotations

import math
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

import numpy as np

from app.events import ErrorCategory, ErrorSeverity, publish_error
from configs.settings import TrackerConfig
from contracts import Vector3
from exceptions import InvalidAnchorError, InvalidSampleImageError
from log_config.logger import get_logger
from track.appearance import AppearanceModel

logger = get_logger(__name__)


@dataclass
class TrackedObject:
    """Both camera models of one object plus its anchor offset."""

    left: AppearanceModel
    right: AppearanceModel
    anchor: Vector3 = (0.0, 0.0, 0.0)

    @property
    def view_count(self) -> int:
        return self.left.view_count

    def has_anchor(self) -> bool:
        return any(self.anchor)


class ObjectRegistry:
    """Name -> TrackedObject map guarded by one lock.

    Left and right models live in the same entry, so a reader holding the
    lock always sees both or neither. The frame loop holds the lock while it
    tracks every object through ``locked()``; register/remove/list wait for it.
    """

    def __init__(self, config: Optional[TrackerConfig] = None) -> None:
        self._config = config or TrackerConfig()
        self._objects: Dict[str, TrackedObject] = {}
        self._lock = threading.RLock()

    def register(self, name: str, anchor: Vector3, sample: Optional[np.ndarray]) -> TrackedObject:
        """Create or overwrite an object and learn one more view of it.

        Raises:
            InvalidSampleImageError: If the sample image is missing or empty
            InvalidAnchorError: If the anchor is not three finite coordinates
        """
        if sample is None or getattr(sample, "size", 0) == 0:
            publish_error(
                category=ErrorCategory.REGISTRY,
                severity=ErrorSeverity.ERROR,
                message=f"Rejected empty sample image for {name}",
                source="ObjectRegistry",
            )
            raise InvalidSampleImageError(f"Sample image for {name} is empty", name=name)

        anchor = self._check_anchor(name, anchor)
        with self._lock:
            entry = self._objects.get(name)
            if entry is None:
                entry = TrackedObject(
                    left=AppearanceModel(self._config),
                    right=AppearanceModel(self._config),
                )
                self._objects[name] = entry
                logger.info(f"Adding object {name}")
            elif entry.has_anchor():
                logger.warning(f"Overwriting the object {name}")

            entry.anchor = anchor
            entry.left.add_view(sample)
            entry.right.add_view(sample)
            logger.debug(f"Object {name} now has {entry.view_count} views, anchor={anchor}")
            return entry

    def _check_anchor(self, name: str, anchor) -> Vector3:
        try:
            values = tuple(float(v) for v in anchor)
        except (TypeError, ValueError):
            values = ()
        if len(values) != 3 or not all(math.isfinite(v) for v in values):
            publish_error(
                category=ErrorCategory.REGISTRY,
                severity=ErrorSeverity.ERROR,
                message=f"Rejected anchor {anchor!r} for {name}",
                source="ObjectRegistry",
            )
            raise InvalidAnchorError(f"Anchor for {name} must be three finite numbers, got {anchor!r}", name=name)
        return values

    def remove(self, name: str) -> bool:
        """Forget an object; unknown names are ignored."""
        with self._lock:
            removed = self._objects.pop(name, None) is not None
        if removed:
            logger.info(f"Removed object {name}")
        else:
            logger.debug(f"Remove ignored, unknown object {name}")
        return removed

    def names(self) -> List[str]:
        with self._lock:
            return list(self._objects)

    def get(self, name: str) -> Optional[TrackedObject]:
        with self._lock:
            return self._objects.get(name)

    @contextmanager
    def locked(self) -> Iterator[Dict[str, TrackedObject]]:
        """Hold the registry for a whole frame episode."""
        with self._lock:
            yield dict(self._objects)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._objects

    def __len__(self) -> int:
        with self._lock:
            return len(self._objects)
