"""Process-wide bus for non-fatal error reports.

Components report conditions that must not stop tracking (desynchronized
streams, rejected samples, failed preload entries, broken event handlers)
here. Every report is logged; subscribers and the bounded history let other
components and tests react to them.
"""

from __future__ import annotations

import threading
import time
from collections import Counter, deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from log_config.logger import get_logger

logger = get_logger(__name__)

MAX_HISTORY = 100


class ErrorSeverity(Enum):
    WARNING = "warning"  # Operation continues
    ERROR = "error"  # Result for this input is degraded or dropped


class ErrorCategory(Enum):
    SYNC = "sync"
    STEREO = "stereo"
    REGISTRY = "registry"
    PRELOAD = "preload"
    SYSTEM = "system"


@dataclass
class ErrorEvent:
    category: ErrorCategory
    severity: ErrorSeverity
    message: str
    source: str
    timestamp: float = field(default_factory=time.time)
    exception: Optional[Exception] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        exc_info = f" ({type(self.exception).__name__})" if self.exception else ""
        return f"[{self.severity.value.upper()}] {self.category.value}/{self.source}: {self.message}{exc_info}"


ErrorCallback = Callable[[ErrorEvent], None]


class ErrorEventBus:
    """Fan error events out to subscribers, optionally filtered by category."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: List[Tuple[Optional[ErrorCategory], ErrorCallback]] = []
        self._history: Deque[ErrorEvent] = deque(maxlen=MAX_HISTORY)
        self._counts: Counter = Counter()

    def subscribe(self, callback: ErrorCallback, category: Optional[ErrorCategory] = None) -> None:
        """Call callback for every event of category, or for all events when None."""
        with self._lock:
            self._subscribers.append((category, callback))

    def unsubscribe(self, callback: ErrorCallback, category: Optional[ErrorCategory] = None) -> None:
        with self._lock:
            if (category, callback) in self._subscribers:
                self._subscribers.remove((category, callback))

    def publish(self, event: ErrorEvent) -> None:
        with self._lock:
            self._history.append(event)
            self._counts[event.category] += 1
            callbacks = [cb for category, cb in self._subscribers if category in (None, event.category)]

        logger.log(event.severity.name, str(event))

        # Outside the lock; a failing subscriber must not stop the others
        for callback in callbacks:
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in error subscriber {getattr(callback, '__name__', callback)!r}: {e}")

    def get_history(self, category: Optional[ErrorCategory] = None) -> List[ErrorEvent]:
        """Most recent events, oldest first."""
        with self._lock:
            history = list(self._history)
        if category is None:
            return history
        return [e for e in history if e.category == category]

    def get_error_counts(self) -> Dict[ErrorCategory, int]:
        with self._lock:
            return dict(self._counts)

    def clear_history(self) -> None:
        with self._lock:
            self._history.clear()
            self._counts.clear()


_error_bus: Optional[ErrorEventBus] = None
_bus_lock = threading.Lock()


def get_error_bus() -> ErrorEventBus:
    global _error_bus
    with _bus_lock:
        if _error_bus is None:
            _error_bus = ErrorEventBus()
    return _error_bus


def publish_error(
    category: ErrorCategory,
    severity: ErrorSeverity,
    message: str,
    source: str,
    exception: Optional[Exception] = None,
    **metadata: Any,
) -> None:
    """Report one error on the global bus; extra keyword arguments become metadata."""
    get_error_bus().publish(
        ErrorEvent(
            category=category,
            severity=severity,
            message=message,
            source=source,
            exception=exception,
            metadata=metadata,
        )
    )
