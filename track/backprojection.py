"""Back-projection of appearance models restricted to a search region."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from configs.settings import TrackerConfig
from contracts import Rect
from track.appearance import HUE_RANGE, SAT_RANGE, AppearanceModel, to_bgr


@dataclass(frozen=True)
class BackProjection:
    """Likelihood image of a region and the region's offset in the full image."""

    response: np.ndarray
    roi: Rect

    def to_local(self, rect: Rect) -> Rect:
        return Rect(rect.x - self.roi.x, rect.y - self.roi.y, rect.width, rect.height)

    def to_global(self, rect: Rect) -> Rect:
        return Rect(rect.x + self.roi.x, rect.y + self.roi.y, rect.width, rect.height)

    @property
    def peak(self) -> float:
        return float(self.response.max()) if self.response.size else 0.0


def back_project(
    image: np.ndarray,
    model: AppearanceModel,
    window: Rect,
    config: TrackerConfig,
) -> Optional[BackProjection]:
    """Back-project every learned histogram over the window plus a margin.

    Only the pixels of the expanded window are converted and scored, so the
    cost follows the window size rather than the image size. Responses of
    several views are combined with a per-pixel maximum, then masked by the
    model's dominant hue band when one is known.
    """
    if not model.histograms:
        return None
    height, width = image.shape[:2]
    roi = window.expand(config.search_margin_px).clamp(width, height)
    if roi.is_empty():
        return None

    patch = to_bgr(image)[roi.y:roi.y + roi.height, roi.x:roi.x + roi.width]
    hsv = cv2.cvtColor(patch, cv2.COLOR_BGR2HSV)
    response: Optional[np.ndarray] = None
    for hist in model.histograms:
        projected = cv2.calcBackProject([hsv], [0, 1], hist, [*HUE_RANGE, *SAT_RANGE], 1)
        response = projected if response is None else cv2.max(response, projected)

    band = model.band_mask(hsv)
    if band is not None:
        response = cv2.bitwise_and(response, response, mask=band)
    return BackProjection(response=response, roi=roi)


def largest_component(mask: np.ndarray) -> Optional[Rect]:
    """Bounding rectangle of the largest connected component of a binary mask."""
    num_labels, _, stats, _ = cv2.connectedComponentsWithStats(
        mask.astype(np.uint8), connectivity=8
    )
    if num_labels <= 1:
        return None
    # Label 0 is background
    best = 1 + int(np.argmax(stats[1:, cv2.CC_STAT_AREA]))
    left, top, w, h, _ = stats[best]
    return Rect(int(left), int(top), int(w), int(h))
