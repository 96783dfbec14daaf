from __future__ import annotations

from pathlib import Path

import pytest

from configs.settings import AppConfig, config_from_dict, load_config
from configs.validator import model_entry_errors, validate_config
from exceptions import ConfigValidationError, InvalidConfigError

CONFIG_DIR = Path(__file__).resolve().parents[1] / "configs"


def test_load_default_config() -> None:
    config = load_config(CONFIG_DIR / "default.yaml")

    assert config.sync.policy == "exact"
    assert config.sync.exact_queue_size == 3
    assert config.sync.approximate_queue_size == 100
    assert config.watchdog.imbalance_factor == 3
    assert config.tracker.h_bins == 25
    assert config.tracker.s_bins == 25
    assert config.localizer.mean_k == 50
    assert config.localizer.stddev_mul == 1.0
    assert config.stereo.max_vertical_offset_px == 10.0


def test_defaults_match_dataclasses() -> None:
    assert load_config(CONFIG_DIR / "default.yaml") == AppConfig()


def test_partial_config_keeps_other_defaults() -> None:
    config = config_from_dict({"sync": {"policy": "approximate"}, "tracker": {"algorithm": "naive"}})
    assert config.sync.policy == "approximate"
    assert config.sync.approximate_slack_ms == 20.0
    assert config.tracker.algorithm == "naive"
    assert config.localizer == AppConfig().localizer


def test_unknown_key_is_rejected() -> None:
    with pytest.raises(ConfigValidationError) as excinfo:
        validate_config({"tracker": {"bins": 10}})
    assert excinfo.value.validation_errors


def test_bad_policy_is_rejected() -> None:
    with pytest.raises(ConfigValidationError):
        config_from_dict({"sync": {"policy": "sometimes"}})


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(InvalidConfigError):
        load_config(tmp_path / "nope.yaml")


def test_unparsable_file(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("sync: [unclosed\n")
    with pytest.raises(InvalidConfigError):
        load_config(path)


def test_empty_file_gives_defaults(tmp_path: Path) -> None:
    path = tmp_path / "empty.yaml"
    path.write_text("")
    assert load_config(path) == AppConfig()


def test_model_entry_validation() -> None:
    assert model_entry_errors({"name": "ball", "path": "ball.png"}) == []
    assert model_entry_errors({"name": "ball", "path": "ball.png", "anchor": [0, 0.1, 0]}) == []
    assert model_entry_errors({"name": "ball"})
    assert model_entry_errors({"name": "ball", "path": "ball.png", "anchor": [1, 2]})
    assert model_entry_errors("ball.png")
