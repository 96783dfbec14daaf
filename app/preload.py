"""Startup registration of objects from a YAML model list.

The list holds mappings with ``name``, ``path`` (sample image, relative
paths resolve against the list's directory) and an optional
``anchor: [x, y, z]``. Entries are applied in order. A bad entry or an
unreadable image is reported and skipped; a list that cannot be read at all
stops preloading, keeping whatever was already registered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional

import cv2
import numpy as np
import yaml

from app.events import ErrorCategory, ErrorSeverity, publish_error
from app.registry import ObjectRegistry
from configs.validator import model_entry_errors
from exceptions import PreloadError, RegistryError
from log_config.logger import get_logger

logger = get_logger(__name__)

ImageReader = Callable[[str], Optional[np.ndarray]]


@dataclass
class PreloadResult:
    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    aborted: bool = False


def load_model_list(path: Path) -> List[Any]:
    """Read the raw entries of a model list.

    Raises:
        PreloadError: If the file is missing, unparsable, or not a list
    """
    if not path.exists():
        raise PreloadError(f"Model list not found: {path}", path=str(path))
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise PreloadError(f"Failed to read model list {path}: {e}", path=str(path))
    except yaml.YAMLError as e:
        raise PreloadError(f"Failed to parse model list {path}: {e}", path=str(path))
    if data is None:
        return []
    if not isinstance(data, list):
        raise PreloadError(f"Model list {path} must be a sequence of entries", path=str(path))
    return data


def _report(result: PreloadResult, message: str) -> None:
    result.errors.append(message)
    logger.error(message)
    publish_error(
        category=ErrorCategory.PRELOAD,
        severity=ErrorSeverity.ERROR,
        message=message,
        source="preload_models",
    )


def preload_models(
    registry: ObjectRegistry,
    path: Path,
    image_reader: ImageReader = cv2.imread,
) -> PreloadResult:
    result = PreloadResult()
    try:
        entries = load_model_list(path)
    except PreloadError as e:
        result.aborted = True
        _report(result, str(e))
        return result

    for index, entry in enumerate(entries):
        errors = model_entry_errors(entry)
        if errors:
            result.skipped.append(f"#{index}")
            _report(result, f"Invalid model entry #{index} in {path}: {'; '.join(errors)}")
            continue

        name = entry["name"]
        image_path = Path(entry["path"])
        if not image_path.is_absolute():
            image_path = path.parent / image_path
        anchor = tuple(entry.get("anchor", (0.0, 0.0, 0.0)))

        logger.info(f"Adding {name} {image_path}")
        image = image_reader(str(image_path))
        if image is None:
            result.skipped.append(name)
            _report(result, f"Cannot read sample image {image_path} for {name}")
            continue
        try:
            registry.register(name, anchor, image)
        except RegistryError as e:
            result.skipped.append(name)
            _report(result, str(e))
            continue
        result.applied.append(name)

    logger.info(f"Parsed models: {path} ({len(result.applied)} applied, {len(result.skipped)} skipped)")
    return result
