"""Configuration validation using JSON Schema."""

from __future__ import annotations

from typing import Any, Dict, List

import jsonschema
from jsonschema import Draft7Validator, validators

from exceptions import ConfigValidationError
from log_config.logger import get_logger

logger = get_logger(__name__)

# JSON Schema for default.yaml configuration
CONFIG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "sync": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "policy": {"type": "string", "enum": ["exact", "approximate"], "default": "exact"},
                "exact_queue_size": {"type": "integer", "minimum": 1, "maximum": 1000},
                "approximate_queue_size": {"type": "integer", "minimum": 1, "maximum": 10000},
                "approximate_slack_ms": {"type": "number", "minimum": 0.0, "maximum": 5000},
            },
        },
        "watchdog": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "interval_s": {"type": "number", "exclusiveMinimum": 0.0},
                "imbalance_factor": {"type": "integer", "minimum": 1},
            },
        },
        "tracker": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "algorithm": {"type": "string", "enum": ["camshift", "naive"], "default": "camshift"},
                "h_bins": {"type": "integer", "minimum": 2, "maximum": 180},
                "s_bins": {"type": "integer", "minimum": 2, "maximum": 256},
                "mask_threshold": {"type": "integer", "minimum": 0, "maximum": 254},
                "peak_value": {"type": "number", "exclusiveMinimum": 0.0, "maximum": 255.0},
                "backproject_threshold": {"type": "number", "minimum": 0.0, "maximum": 255.0},
                "min_response": {"type": "number", "minimum": 0.0, "maximum": 255.0},
                "search_margin_px": {"type": "integer", "minimum": 0, "maximum": 2000},
                "max_iterations": {"type": "integer", "minimum": 1, "maximum": 1000},
                "epsilon": {"type": "number", "exclusiveMinimum": 0.0},
                "hue_band_ratio": {"type": "number", "minimum": 0.0, "maximum": 1.0},
                "min_saturation": {"type": "integer", "minimum": 0, "maximum": 255},
                "min_value": {"type": "integer", "minimum": 0, "maximum": 255},
            },
        },
        "stereo": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "max_vertical_offset_px": {"type": "number", "minimum": 0.0},
                "min_width_ratio": {"type": "number", "exclusiveMinimum": 0.0},
                "max_width_ratio": {"type": "number", "exclusiveMinimum": 0.0},
            },
        },
        "localizer": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "mean_k": {"type": "integer", "minimum": 1, "maximum": 1000},
                "stddev_mul": {"type": "number", "minimum": 0.0},
            },
        },
        "publish": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "frame_id": {"type": "string"},
                "missing_input_warn_interval_s": {"type": "number", "minimum": 0.0},
                "tracking_warn_interval_s": {"type": "number", "minimum": 0.0},
                "slow_frame_ms": {"type": "number", "minimum": 0.0},
            },
        },
        "preload": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "models_path": {"type": ["string", "null"], "default": None},
            },
        },
    },
}

# JSON Schema for one entry of a preload model list
MODEL_ENTRY_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["name", "path"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "path": {"type": "string", "minLength": 1},
        "anchor": {
            "type": "array",
            "items": {"type": "number"},
            "minItems": 3,
            "maxItems": 3,
        },
    },
}


def extend_with_default(validator_class):
    """Extend JSON Schema validator to set default values."""
    validate_properties = validator_class.VALIDATORS["properties"]

    def set_defaults(validator, properties, instance, schema):
        for prop, subschema in properties.items():
            if "default" in subschema:
                instance.setdefault(prop, subschema["default"])

        for error in validate_properties(validator, properties, instance, schema):
            yield error

    return validators.extend(validator_class, {"properties": set_defaults})


DefaultValidatingValidator = extend_with_default(Draft7Validator)


def validate_config(config: Dict[str, Any]) -> None:
    """Validate configuration against JSON Schema.

    Args:
        config: Configuration dictionary

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    try:
        validator = DefaultValidatingValidator(CONFIG_SCHEMA)
        errors = list(validator.iter_errors(config))

        if errors:
            error_messages = []
            for error in errors:
                path = " -> ".join(str(p) for p in error.path) if error.path else "root"
                error_messages.append(f"{path}: {error.message}")

            logger.error(f"Configuration validation failed with {len(errors)} errors")
            for msg in error_messages:
                logger.error(f"  - {msg}")

            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s). See logs for details.",
                validation_errors=error_messages,
            )

        logger.info("Configuration validation passed")

    except jsonschema.exceptions.SchemaError as e:
        logger.error(f"Invalid schema: {e}")
        raise ConfigValidationError(f"Invalid schema definition: {e}")


def validate_config_file(config_path: str) -> None:
    """Validate a YAML configuration file.

    Args:
        config_path: Path to configuration file

    Raises:
        ConfigValidationError: If configuration is invalid
    """
    import yaml
    from pathlib import Path

    path = Path(config_path)
    if not path.exists():
        raise ConfigValidationError(f"Configuration file not found: {config_path}")

    try:
        with open(path, "r") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse YAML: {e}")
        raise ConfigValidationError(f"Failed to parse configuration file: {e}")

    validate_config(config)


def model_entry_errors(entry: Any) -> List[str]:
    """Return schema violations for one preload model entry (empty if valid)."""
    validator = Draft7Validator(MODEL_ENTRY_SCHEMA)
    messages = []
    for error in validator.iter_errors(entry):
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        messages.append(f"{path}: {error.message}")
    return messages


__all__ = [
    "validate_config",
    "validate_config_file",
    "model_entry_errors",
    "CONFIG_SCHEMA",
    "MODEL_ENTRY_SCHEMA",
]
