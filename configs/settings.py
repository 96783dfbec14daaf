"""Configuration loading for the hueblob tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from configs.validator import validate_config
from exceptions import ConfigError, InvalidConfigError
from log_config.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SyncConfig:
    policy: str = "exact"  # "exact" or "approximate"
    exact_queue_size: int = 3
    approximate_queue_size: int = 100
    approximate_slack_ms: float = 20.0


@dataclass(frozen=True)
class WatchdogConfig:
    interval_s: float = 30.0
    imbalance_factor: int = 3


@dataclass(frozen=True)
class TrackerConfig:
    algorithm: str = "camshift"  # "camshift" or "naive"
    h_bins: int = 25
    s_bins: int = 25
    mask_threshold: int = 5  # Gray level separating the sample from its dark background
    peak_value: float = 255.0
    backproject_threshold: float = 75.0
    min_response: float = 1.0
    search_margin_px: int = 40
    max_iterations: int = 10
    epsilon: float = 1.0
    hue_band_ratio: float = 0.2
    min_saturation: int = 30
    min_value: int = 30


@dataclass(frozen=True)
class StereoConfig:
    max_vertical_offset_px: float = 10.0
    min_width_ratio: float = 0.5
    max_width_ratio: float = 1.5


@dataclass(frozen=True)
class LocalizerConfig:
    mean_k: int = 50
    stddev_mul: float = 1.0


@dataclass(frozen=True)
class PublishConfig:
    frame_id: str = "camera_bottom_left_optical"
    missing_input_warn_interval_s: float = 1.0
    tracking_warn_interval_s: float = 20.0
    slow_frame_ms: float = 100.0


@dataclass(frozen=True)
class PreloadConfig:
    models_path: Optional[str] = None


@dataclass(frozen=True)
class AppConfig:
    sync: SyncConfig = field(default_factory=SyncConfig)
    watchdog: WatchdogConfig = field(default_factory=WatchdogConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    stereo: StereoConfig = field(default_factory=StereoConfig)
    localizer: LocalizerConfig = field(default_factory=LocalizerConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)
    preload: PreloadConfig = field(default_factory=PreloadConfig)


def config_from_dict(data: Dict[str, Any]) -> AppConfig:
    """Validate a configuration mapping and build an AppConfig from it.

    Raises:
        ConfigValidationError: If the mapping violates the schema
        InvalidConfigError: If sections cannot be turned into config objects
    """
    data = dict(data or {})
    validate_config(data)
    try:
        return AppConfig(
            sync=SyncConfig(**data.get("sync", {})),
            watchdog=WatchdogConfig(**data.get("watchdog", {})),
            tracker=TrackerConfig(**data.get("tracker", {})),
            stereo=StereoConfig(**data.get("stereo", {})),
            localizer=LocalizerConfig(**data.get("localizer", {})),
            publish=PublishConfig(**data.get("publish", {})),
            preload=PreloadConfig(**data.get("preload", {})),
        )
    except TypeError as e:
        logger.error(f"Failed to construct configuration objects: {e}")
        raise InvalidConfigError(f"Failed to construct configuration: {e}")


def load_config(path: Path) -> AppConfig:
    """Load and validate configuration from YAML file.

    Args:
        path: Path to configuration file

    Returns:
        Validated AppConfig instance

    Raises:
        ConfigError: If configuration is invalid or cannot be loaded
    """
    try:
        logger.info(f"Loading configuration from {path}")
        if not path.exists():
            raise InvalidConfigError(f"Configuration file not found: {path}")

        data = yaml.safe_load(path.read_text())
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise InvalidConfigError(f"Configuration root must be a mapping: {path}")

    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML configuration: {e}")
        raise InvalidConfigError(f"Failed to parse configuration file: {e}")

    config = config_from_dict(data)
    logger.info(
        f"Configuration loaded successfully: {config.sync.policy} sync, "
        f"{config.tracker.algorithm} tracker"
    )
    return config


__all__ = [
    "AppConfig",
    "ConfigError",
    "LocalizerConfig",
    "PreloadConfig",
    "PublishConfig",
    "StereoConfig",
    "SyncConfig",
    "TrackerConfig",
    "WatchdogConfig",
    "config_from_dict",
    "load_config",
]
