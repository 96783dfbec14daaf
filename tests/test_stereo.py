from __future__ import annotations

import math

import numpy as np
import pytest

from configs.settings import StereoConfig
from contracts import CameraInfo, PointEstimate, Rect
from exceptions import CalibrationError
from stereo import PinholeModel, StereoReconstructor, check_consistency
from stereo.reconstructor import dense_points
from synthetic import BASELINE, CX, CY, FOCAL, FX, FY, make_disparity, make_frame, make_scene


def pinhole() -> PinholeModel:
    return PinholeModel(fx=FX, fy=FY, cx=CX, cy=CY, focal_baseline=FOCAL * BASELINE)


def test_project_pixel() -> None:
    x, y, z = pinhole().project(CX + 50.0, CY - 25.0, 10.0)
    assert z == pytest.approx(5.0)
    assert x == pytest.approx(0.5)
    assert y == pytest.approx(-0.25)


@pytest.mark.parametrize("disparity", [0.0, math.inf, math.nan])
def test_project_rejects_unusable_disparity(disparity: float) -> None:
    assert pinhole().project(10.0, 10.0, disparity) is None


def test_calibration_is_validated(camera_info: CameraInfo) -> None:
    disparity = make_disparity(10.0)
    assert PinholeModel.from_calibration(camera_info, disparity) == pinhole()

    with pytest.raises(CalibrationError):
        PinholeModel.from_calibration(CameraInfo(640, 480, P=(500.0, 0.0, 320.0)), disparity)
    with pytest.raises(CalibrationError):
        PinholeModel.from_calibration(CameraInfo(640, 480, P=(0.0,) * 12), disparity)


class TestConsistency:
    def test_vertical_offset_within_tolerance(self) -> None:
        left = Rect(100, 100, 20, 20)
        assert check_consistency(left, Rect(80, 109, 20, 20)).consistent
        assert check_consistency(left, Rect(80, 110, 20, 20)).consistent

    def test_vertical_offset_beyond_tolerance(self) -> None:
        check = check_consistency(Rect(100, 100, 20, 20), Rect(80, 111, 20, 20))
        assert not check.consistent
        assert check.vertical_offset_px == 11.0

    @pytest.mark.parametrize("right_width,consistent", [(14, True), (40, True), (41, False), (13, False)])
    def test_width_ratio(self, right_width: int, consistent: bool) -> None:
        check = check_consistency(Rect(100, 100, 20, 20), Rect(80, 100, right_width, 20))
        assert check.consistent is consistent

    def test_thresholds_are_configurable(self) -> None:
        config = StereoConfig(max_vertical_offset_px=20.0)
        assert check_consistency(Rect(100, 100, 20, 20), Rect(80, 115, 20, 20), config).consistent


class TestReconstructor:
    def setup_method(self) -> None:
        image = make_scene(Rect(0, 0, 1, 1))
        self.disparity_value = 10.0
        self.frame = make_frame(1.0, image, image, make_disparity(self.disparity_value))
        self.reconstructor = StereoReconstructor()

    def test_dense_points_cover_valid_pixels(self) -> None:
        reconstruction = self.reconstructor.reconstruct(
            self.frame, Rect(300, 200, 5, 4), Rect(290, 200, 5, 4)
        )
        assert reconstruction.point_count == 20
        assert np.allclose(reconstruction.points[:, 2], 5.0)

    def test_estimate_uses_center_disparity(self) -> None:
        reconstruction = self.reconstructor.reconstruct(
            self.frame, Rect(330, 250, 10, 10), Rect(320, 250, 10, 10)
        )
        estimate = reconstruction.estimate
        assert estimate.valid
        assert estimate.Z == pytest.approx(5.0)
        assert estimate.X == pytest.approx(0.1)
        assert estimate.Y == pytest.approx(0.1)

    def test_inconsistent_boxes_give_origin(self) -> None:
        reconstruction = self.reconstructor.reconstruct(
            self.frame, Rect(330, 100, 10, 10), Rect(320, 111, 10, 10)
        )
        assert reconstruction.estimate == PointEstimate.origin()
        assert not reconstruction.consistency.consistent
        assert reconstruction.point_count == 100

    def test_zero_center_disparity_gives_origin(self) -> None:
        reconstruction = self.reconstructor.reconstruct(
            self.frame, Rect(330, 100, 10, 10), Rect(330, 100, 10, 10)
        )
        assert reconstruction.estimate == PointEstimate.origin()

    def test_invalid_disparities_are_skipped(self) -> None:
        disparity = make_disparity(10.0)
        disparity.image[200:202, 300:305] = 0.0
        disparity.image[202, 300] = np.nan
        disparity.image[202, 301] = 500.0  # Above max_disparity
        points = dense_points(disparity, pinhole(), Rect(300, 200, 5, 4))
        assert points.shape == (8, 3)

    def test_box_without_disparity_gives_empty_points(self) -> None:
        points = dense_points(make_disparity(0.0), pinhole(), Rect(10, 10, 5, 5))
        assert points.shape == (0, 3)

    def test_box_outside_image_gives_empty_points(self) -> None:
        points = dense_points(make_disparity(10.0), pinhole(), Rect(700, 10, 5, 5))
        assert points.shape == (0, 3)
