from __future__ import annotations

import numpy as np
import pytest

from configs.settings import TrackerConfig
from contracts import Rect
from synthetic import make_scene, paint_two_tone
from track import build_tracker, track_model
from track.appearance import AppearanceModel
from track.backprojection import back_project, largest_component
from track.camshift_tracker import CamShiftTracker
from track.naive_tracker import NaiveTracker

SQUARE = Rect(200, 150, 40, 40)


@pytest.fixture
def model(sample: np.ndarray) -> AppearanceModel:
    model = AppearanceModel()
    model.add_view(sample)
    return model


@pytest.fixture(params=["camshift", "naive"])
def tracker(request):
    return build_tracker(TrackerConfig(algorithm=request.param))


def test_build_tracker_selects_algorithm() -> None:
    assert isinstance(build_tracker(TrackerConfig(algorithm="naive")), NaiveTracker)
    assert isinstance(build_tracker(TrackerConfig()), CamShiftTracker)


def test_back_projection_is_limited_to_window(model: AppearanceModel) -> None:
    image = make_scene(SQUARE)
    config = TrackerConfig(search_margin_px=10)
    projection = back_project(image, model, Rect(190, 140, 60, 60), config)

    assert projection.roi == Rect(180, 130, 80, 80)
    assert projection.response.shape == (80, 80)
    assert projection.peak == 255.0


def test_largest_component() -> None:
    mask = np.zeros((50, 50), dtype=np.uint8)
    mask[2:4, 2:4] = 1
    mask[10:30, 20:25] = 1
    assert largest_component(mask) == Rect(20, 10, 5, 20)
    assert largest_component(np.zeros((5, 5), dtype=np.uint8)) is None


def test_finds_object_from_full_frame(tracker, model: AppearanceModel) -> None:
    image = make_scene(SQUARE)
    outcome = tracker.track(image, model, None)

    assert outcome.found
    cx, cy = outcome.region.center
    assert abs(cx - 220) <= 3
    assert abs(cy - 170) <= 3
    box = outcome.region.bounding_rect()
    assert box.width >= 30 and box.height >= 30


def test_follows_object_between_frames(tracker, model: AppearanceModel) -> None:
    track_model(tracker, make_scene(SQUARE), model)
    assert model.search_window is not None

    moved = Rect(SQUARE.x + 15, SQUARE.y + 10, SQUARE.width, SQUARE.height)
    region = track_model(tracker, make_scene(moved), model)

    assert region is not None
    assert abs(region.center[0] - 235) <= 3
    assert abs(region.center[1] - 180) <= 3


def test_naive_window_keeps_its_size(model: AppearanceModel) -> None:
    tracker = NaiveTracker()
    first = tracker.track(make_scene(SQUARE), model, None)
    second = tracker.track(make_scene(Rect(210, 155, 40, 40)), model, first.window)

    assert (first.window.width, first.window.height) == (40, 40)
    assert (second.window.width, second.window.height) == (40, 40)


def test_lost_object_resets_window(tracker, model: AppearanceModel) -> None:
    model.search_window = Rect(10, 10, 20, 20)
    blank = np.zeros((480, 640, 3), dtype=np.uint8)
    region = track_model(tracker, blank, model)

    assert region is None
    assert model.search_window is None


def test_wrong_color_is_not_tracked(tracker, model: AppearanceModel) -> None:
    outcome = tracker.track(make_scene(SQUARE, color=(0, 0, 200)), model, None)
    assert not outcome.found
    assert outcome.window == Rect.full_frame(640, 480)


def test_model_without_views_is_lost(tracker) -> None:
    outcome = tracker.track(make_scene(SQUARE), AppearanceModel(), None)
    assert not outcome.found


def test_tracking_does_not_mutate_model(tracker, model: AppearanceModel) -> None:
    before = [h.copy() for h in model.histograms]
    tracker.track(make_scene(SQUARE), model, None)

    assert model.search_window is None
    for old, new in zip(before, model.histograms):
        np.testing.assert_array_equal(old, new)


def test_tracks_red_object_across_hue_wrap(tracker) -> None:
    model = AppearanceModel()
    model.add_view(paint_two_tone(np.zeros((50, 50, 3), dtype=np.uint8), Rect(5, 5, 40, 40)))
    image = paint_two_tone(np.zeros((480, 640, 3), dtype=np.uint8), SQUARE)

    outcome = tracker.track(image, model, None)

    assert outcome.found
    box = outcome.region.bounding_rect()
    assert box.width >= 30 and box.height >= 30
    assert abs(outcome.region.center[0] - 220) <= 3
