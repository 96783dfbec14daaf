"""Per-frame tracking of every registered object.

For each frame tuple and each object the pipeline runs

    left track -> right track -> consistency check -> reconstruction -> filtering

and publishes one Blob. Any failed step publishes a degenerate Blob for that
object instead; other objects are unaffected. Nothing but the models'
search windows carries over from one tuple to the next.
"""

from __future__ import annotations

import time
from typing import List, Optional, Tuple

import numpy as np

from app.annotate import annotate_blobs
from app.events import ErrorCategory, ErrorSeverity, publish_error
from app.events.event_bus import EventBus
from app.events.event_types import (
    BlobCountEvent,
    BlobTrackedEvent,
    PointCloudEvent,
    TrackedImageEvent,
)
from app.registry import ObjectRegistry, TrackedObject
from configs.settings import AppConfig
from contracts import Blob, FrameTuple
from exceptions import StereoError
from localize.localizer import RobustLocalizer, depth_density
from log_config.logger import RateLimiter, get_logger, log_performance
from stereo.reconstructor import StereoReconstructor
from track.tracker import Tracker, build_tracker, track_model

logger = get_logger(__name__)


class TrackingOrchestrator:
    def __init__(
        self,
        registry: ObjectRegistry,
        bus: EventBus,
        config: Optional[AppConfig] = None,
        tracker: Optional[Tracker] = None,
        reconstructor: Optional[StereoReconstructor] = None,
        localizer: Optional[RobustLocalizer] = None,
    ) -> None:
        self._config = config or AppConfig()
        self._registry = registry
        self._bus = bus
        self._tracker = tracker or build_tracker(self._config.tracker)
        self._reconstructor = reconstructor or StereoReconstructor(self._config.stereo)
        self._localizer = localizer or RobustLocalizer(self._config.localizer)
        self._missing_input_limiter = RateLimiter(self._config.publish.missing_input_warn_interval_s)
        self._tracking_limiter = RateLimiter(self._config.publish.tracking_warn_interval_s)
        self._frames_processed = 0

    @property
    def frames_processed(self) -> int:
        return self._frames_processed

    def process(self, frame: FrameTuple) -> List[Blob]:
        """Track all registered objects in one frame tuple and publish the results."""
        missing = frame.missing_fields()
        if missing:
            if self._missing_input_limiter.ready():
                logger.warning(f"Inputs missing ({', '.join(missing)}). Aborting tracking")
            return []

        start = time.perf_counter()
        results: List[Tuple[Blob, Optional[np.ndarray]]] = []
        with self._registry.locked() as objects:
            for name, entry in objects.items():
                results.append(self.track_object(frame, name, entry))

        # Published after the registry lock is released
        blobs = [blob for blob, _ in results]
        for blob, points in results:
            self._bus.publish(BlobTrackedEvent(blob=blob))
            if points is not None and points.size and self._bus.has_subscribers(PointCloudEvent):
                self._bus.publish(
                    PointCloudEvent(
                        name=blob.name,
                        timestamp=frame.timestamp,
                        frame_id=blob.frame_id,
                        points=points,
                    )
                )

        self._bus.publish(BlobCountEvent(timestamp=frame.timestamp, count=len(blobs)))
        self._publish_tracked_image(frame, blobs)
        self._frames_processed += 1
        log_performance(
            f"Tracking {len(blobs)} objects",
            (time.perf_counter() - start) * 1000.0,
            self._config.publish.slow_frame_ms,
        )
        return blobs

    def track_object(
        self, frame: FrameTuple, name: str, entry: TrackedObject
    ) -> Tuple[Blob, Optional[np.ndarray]]:
        """Run the full per-object pipeline; returns the blob and its filtered points."""
        frame_id = self._config.publish.frame_id
        degenerate = Blob(name=name, timestamp=frame.timestamp, frame_id=frame_id)

        left_region = track_model(self._tracker, frame.left_image, entry.left)
        right_region = track_model(self._tracker, frame.right_image, entry.right)
        if left_region is None or right_region is None:
            side = "left" if left_region is None else "right"
            if self._tracking_limiter.ready((name, side)):
                logger.warning(f"Failed to track object {name} ({side} image)")
            return degenerate, None

        height, width = frame.left_image.shape[:2]
        right_height, right_width = frame.right_image.shape[:2]
        rect = left_region.bounding_rect().clamp(width, height)
        right_rect = right_region.bounding_rect().clamp(right_width, right_height)
        if rect.is_empty() or right_rect.is_empty():
            if self._tracking_limiter.ready((name, "window")):
                logger.warning(f"Failed to track object {name} (invalid tracking window)")
            return degenerate, None

        try:
            reconstruction = self._reconstructor.reconstruct(frame, rect, right_rect)
        except StereoError as e:
            publish_error(
                category=ErrorCategory.STEREO,
                severity=ErrorSeverity.ERROR,
                message=f"Reconstruction failed for {name}: {e}",
                source="TrackingOrchestrator",
                exception=e,
            )
            return Blob(name=name, timestamp=frame.timestamp, frame_id=frame_id, bounding_box_2d=rect), None

        density = depth_density(reconstruction.point_count, rect)
        localization = self._localizer.localize(reconstruction.points)
        diagnostics = {
            "raw_points": localization.raw_count,
            "filtered_points": localization.filtered_count,
            "stereo_consistent": reconstruction.consistency.consistent,
            "right_box": right_rect.as_tuple(),
        }
        if not localization.located:
            return (
                Blob(
                    name=name,
                    timestamp=frame.timestamp,
                    frame_id=frame_id,
                    bounding_box_2d=rect,
                    position_estimate=reconstruction.estimate,
                    depth_density=density,
                    diagnostics=diagnostics,
                ),
                None,
            )

        centroid = tuple(c + a for c, a in zip(localization.centroid, entry.anchor))
        blob = Blob(
            name=name,
            timestamp=frame.timestamp,
            frame_id=frame_id,
            bounding_box_2d=rect,
            bounding_box_3d=localization.bounding_box,
            centroid_3d=centroid,
            position_estimate=reconstruction.estimate,
            depth_density=density,
            diagnostics=diagnostics,
        )
        return blob, localization.filtered

    def _publish_tracked_image(self, frame: FrameTuple, blobs: List[Blob]) -> None:
        if not blobs or not self._bus.has_subscribers(TrackedImageEvent):
            return
        image = annotate_blobs(frame.left_image, blobs)
        self._bus.publish(
            TrackedImageEvent(
                timestamp=frame.timestamp,
                frame_id=self._config.publish.frame_id,
                image=image,
            )
        )
