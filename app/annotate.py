"""Overlay of tracked boxes on the left image."""

from __future__ import annotations

from typing import Iterable

import cv2
import numpy as np

from contracts import Blob
from track.appearance import to_bgr

BOX_COLOR = (0, 0, 255)  # Red in BGR


def annotate_blobs(image: np.ndarray, blobs: Iterable[Blob]) -> np.ndarray:
    """Return a BGR copy of image with each tracked blob boxed and labelled."""
    canvas = to_bgr(image).copy()
    for blob in blobs:
        if not blob.tracked:
            continue
        x, y, width, height = blob.bounding_box_2d.as_tuple()
        cv2.rectangle(canvas, (x, y), (x + width, y + height), BOX_COLOR, 1)
        cv2.putText(canvas, blob.name, (x, y), cv2.FONT_HERSHEY_SIMPLEX, 0.5, BOX_COLOR)
    return canvas
