"""Fixed-size window tracker.

The window keeps its size once it has been seeded; only its position
follows the back-projection. Seeding from the full frame uses the largest
blob of strongly responding pixels.
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from contracts import Rect, RotatedRegion
from track.appearance import AppearanceModel
from track.backprojection import back_project, largest_component
from track.tracker import TrackOutcome, Tracker


class NaiveTracker(Tracker):
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

        if window is None or start == Rect.full_frame(width, height):
            strong = projection.response >= self._config.backproject_threshold
            seed = largest_component(strong)
            if seed is None:
                return TrackOutcome.lost(width, height)
        else:
            seed = projection.to_local(start)

        criteria = (
            cv2.TERM_CRITERIA_EPS | cv2.TERM_CRITERIA_COUNT,
            self._config.max_iterations,
            self._config.epsilon,
        )
        _, converged = cv2.meanShift(projection.response, seed.as_tuple(), criteria)
        new_window = projection.to_global(Rect(*(int(v) for v in converged))).clamp(width, height)
        if new_window.is_empty():
            return TrackOutcome.lost(width, height)
        local = projection.to_local(new_window)
        inside = projection.response[local.y:local.y + local.height, local.x:local.x + local.width]
        if not inside.any():
            return TrackOutcome.lost(width, height)
        return TrackOutcome(region=RotatedRegion.from_rect(new_window), window=new_window)
