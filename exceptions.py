"""Custom exception classes for the hueblob tracker."""

from __future__ import annotations

from typing import Optional


class HueBlobError(Exception):
    """Base exception for all hueblob tracker errors."""

    pass


class ConfigError(HueBlobError):
    """Base exception for configuration errors."""

    pass


class InvalidConfigError(ConfigError):
    """Raised when configuration file is invalid or corrupted."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration fails schema validation."""

    def __init__(self, message: str, validation_errors: Optional[list] = None):
        self.validation_errors = validation_errors or []
        super().__init__(message)


class RegistryError(HueBlobError):
    """Base exception for object registry errors."""

    def __init__(self, message: str, name: Optional[str] = None):
        self.name = name
        super().__init__(message)


class InvalidSampleImageError(RegistryError):
    """Raised when a sample image is missing or has zero size."""

    pass


class InvalidAnchorError(RegistryError):
    """Raised when an anchor is not three finite coordinates."""

    pass


class PreloadError(HueBlobError):
    """Raised when the preload model list cannot be read at all."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class SynchronizationError(HueBlobError):
    """Base exception for stream synchronization errors."""

    pass


class UnknownStreamError(SynchronizationError):
    """Raised when a message is pushed for a substream that does not exist."""

    def __init__(self, message: str, stream: Optional[str] = None):
        self.stream = stream
        super().__init__(message)


class StereoError(HueBlobError):
    """Base exception for stereo-related errors."""

    pass


class CalibrationError(StereoError):
    """Raised when camera calibration data is unusable."""

    pass
