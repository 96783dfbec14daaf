"""Back-projection tracker using CAMShift window convergence."""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from contracts import Rect, RotatedRegion
from log_config.logger import get_logger
from track.appearance import AppearanceModel
from track.backprojection import back_project
from track.tracker import TrackOutcome, Tracker

logger = get_logger(__name__)


class CamShiftTracker(Tracker):
    """Adapts window position, size and orientation to the color likelihood."""

    def track(
        self, image: np.ndarray, model: AppearanceModel, window: Optional[Rect]
    ) -> TrackOutcome:
        height, width = image.shape[:2]
        if not model.histograms:
            return TrackOutcome.lost(width, height)

        start = self.start_window(image, window)
        projection = back_project(image, model, start, self._config)
        if projection is None or projection.peak < self._config.min_response:
            return TrackOutcome.lost(width, height)

        criteria = (
            cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT,
            self._config.max_iterations,
            self._config.epsilon,
        )
        try:
            rotated, converged = cv2.CamShift(
                projection.response, projection.to_local(start).as_tuple(), criteria
            )
        except cv2.error as e:
            logger.debug(f"CamShift failed to converge: {e}")
            return TrackOutcome.lost(width, height)

        (cx, cy), (size_w, size_h), angle = rotated
        new_window = projection.to_global(Rect(*(int(v) for v in converged))).clamp(width, height)
        if new_window.is_empty() or size_w <= 0 or size_h <= 0:
            return TrackOutcome.lost(width, height)

        region = RotatedRegion(
            center=(cx + projection.roi.x, cy + projection.roi.y),
            size=(float(size_w), float(size_h)),
            angle=float(angle),
        )
        if not (0 <= region.center[0] < width and 0 <= region.center[1] < height):
            return TrackOutcome.lost(width, height)
        return TrackOutcome(region=region, window=new_window)
