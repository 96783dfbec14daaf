"""Learned hue/saturation appearance model for one tracked object."""

from __future__ import annotations

import math
from typing import List, Optional, Tuple

import cv2
import numpy as np

from configs.settings import TrackerConfig
from contracts import Rect

HsvColor = Tuple[int, int, int]

HUE_RANGE = (0, 180)
SAT_RANGE = (0, 256)


def to_bgr(image: np.ndarray) -> np.ndarray:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image


def normalize_peak(hist: np.ndarray, peak_value: float) -> np.ndarray:
    """Scale a histogram so its largest bin equals peak_value.

    An all-zero histogram stays all zero.
    """
    max_bin = float(hist.max()) if hist.size else 0.0
    scale = peak_value / max_bin if max_bin else 0.0
    return (hist * scale).astype(np.float32)


def covering_arc(band: np.ndarray) -> Tuple[int, int]:
    """First and last bin of the shortest circular arc covering every set bin."""
    bins = np.flatnonzero(band)
    if len(bins) == len(band):
        return 0, len(band) - 1
    gaps = (np.roll(bins, -1) - bins - 1) % len(band)
    k = int(np.argmax(gaps))
    return int(bins[(k + 1) % len(bins)]), int(bins[k])


class AppearanceModel:
    """Histogram model of one object as seen by one camera.

    Every call to add_view appends one hue/saturation histogram, so the model
    accumulates training views. Each histogram is normalized on its own (its
    peak bin equals ``peak_value``), not against a running maximum.

    The search window is the last rectangle the object was tracked in; None
    means "search the full frame".
    """

    def __init__(self, config: Optional[TrackerConfig] = None) -> None:
        self._config = config or TrackerConfig()
        self.histograms: List[np.ndarray] = []
        self.hue_histograms: List[np.ndarray] = []
        self.lower_hue: Optional[HsvColor] = None
        self.upper_hue: Optional[HsvColor] = None
        self.peak_color: Optional[HsvColor] = None
        self.hue_band: Optional[np.ndarray] = None
        self.search_window: Optional[Rect] = None

    @property
    def config(self) -> TrackerConfig:
        return self._config

    @property
    def view_count(self) -> int:
        return len(self.histograms)

    def compute_mask(self, view: np.ndarray) -> np.ndarray:
        """Foreground mask of a sample: everything brighter than the dark background."""
        bgr = to_bgr(view)
        gray = cv2.cvtColor(bgr, cv2.COLOR_BGR2GRAY)
        _, mask = cv2.threshold(gray, self._config.mask_threshold, 255, cv2.THRESH_BINARY)
        return mask

    def add_view(self, view: np.ndarray) -> np.ndarray:
        """Learn one more view of the object and return its histogram."""
        bgr = to_bgr(view)
        mask = self.compute_mask(bgr)
        hsv = cv2.cvtColor(bgr, cv2.COLOR_BGR2HSV)
        hist = cv2.calcHist(
            [hsv],
            [0, 1],
            mask,
            [self._config.h_bins, self._config.s_bins],
            [*HUE_RANGE, *SAT_RANGE],
        )
        hist = normalize_peak(hist, self._config.peak_value)
        self.histograms.append(hist)
        self.update_thresholds(hsv, mask)
        return hist

    def update_thresholds(self, hsv: np.ndarray, mask: np.ndarray) -> None:
        """Widen the dominant hue band with the hue histogram of a new view.

        Hue is circular, so the band grows modulo ``h_bins`` and a red object
        straddling 0/180 yields ``lower_hue > upper_hue``.
        """
        h_bins = self._config.h_bins
        hue_hist = cv2.calcHist([hsv], [0], mask, [h_bins], list(HUE_RANGE)).ravel()
        hue_hist = normalize_peak(hue_hist, self._config.peak_value)
        self.hue_histograms.append(hue_hist)
        if not hue_hist.any():
            return

        peak = int(np.argmax(hue_hist))
        threshold = self._config.hue_band_ratio * float(hue_hist[peak])
        lo, count = peak, 1
        while count < h_bins and hue_hist[(lo - 1) % h_bins] >= threshold:
            lo = (lo - 1) % h_bins
            count += 1
        hi = peak
        while count < h_bins and hue_hist[(hi + 1) % h_bins] >= threshold:
            hi = (hi + 1) % h_bins
            count += 1

        if self.hue_band is None:
            self.hue_band = np.zeros(h_bins, dtype=bool)
        self.hue_band[(lo + np.arange(count)) % h_bins] = True
        lo, hi = covering_arc(self.hue_band)

        bin_width = (HUE_RANGE[1] - HUE_RANGE[0]) / float(h_bins)
        lower = int(math.floor(lo * bin_width))
        upper = min(int(math.ceil((hi + 1) * bin_width)) - 1, HUE_RANGE[1] - 1)
        self.lower_hue = (lower, self._config.min_saturation, self._config.min_value)
        self.upper_hue = (upper, 255, 255)

        mean_h, mean_s, mean_v, _ = cv2.mean(hsv, mask=mask)
        self.peak_color = (int((peak + 0.5) * bin_width), int(round(mean_s)), int(round(mean_v)))

    def band_mask(self, hsv: np.ndarray) -> Optional[np.ndarray]:
        """Pixels of an HSV image inside the hue band, or None before any view."""
        if self.lower_hue is None or self.upper_hue is None:
            return None
        lower, upper = np.array(self.lower_hue), np.array(self.upper_hue)
        if lower[0] <= upper[0]:
            return cv2.inRange(hsv, lower, upper)
        # Wrapped band: [lower, 179] or [0, upper]
        top = upper.copy()
        top[0] = HUE_RANGE[1] - 1
        bottom = lower.copy()
        bottom[0] = HUE_RANGE[0]
        return cv2.bitwise_or(cv2.inRange(hsv, lower, top), cv2.inRange(hsv, bottom, upper))

    def reset_search_window(self) -> None:
        self.search_window = None

    def __repr__(self) -> str:
        return (
            f"AppearanceModel(views={self.view_count}, "
            f"hue_band=({self.lower_hue}, {self.upper_hue}), window={self.search_window})"
        )
