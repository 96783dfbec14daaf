from __future__ import annotations

import numpy as np
import pytest

from app.events import get_error_bus
from contracts import CameraInfo
from synthetic import make_camera_info, make_sample


@pytest.fixture
def camera_info() -> CameraInfo:
    return make_camera_info()


@pytest.fixture
def sample() -> np.ndarray:
    return make_sample()


@pytest.fixture
def error_bus():
    bus = get_error_bus()
    bus.clear_history()
    yield bus
    bus.clear_history()
