"""Thread-safe EventBus used as the tracking result sink.

The EventBus provides a publish-subscribe pattern for decoupled delivery of
tracking results. Publishers can ask how many subscribers an event type has
and skip building events nobody listens to.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Dict, List, Type, TypeVar

from app.events import ErrorCategory, ErrorSeverity, publish_error
from log_config.logger import get_logger

logger = get_logger(__name__)

# Type variables for type-safe event handling
EventType = TypeVar('EventType')
EventHandler = Callable[[EventType], None]


class EventBus:
    """Thread-safe event bus for tracking results.

    Features:
    - Type-safe publish/subscribe
    - Thread-safe for concurrent publishers/subscribers
    - Error isolation (handler errors don't crash bus)
    - Synchronous event delivery (handlers run on publisher's thread)

    Example:
        ```python
        bus = EventBus()

        def handle_blob(event: BlobTrackedEvent):
            print(f"{event.blob.name} at {event.blob.centroid_3d}")

        bus.subscribe(BlobTrackedEvent, handle_blob)
        bus.publish(BlobTrackedEvent(blob=blob))
        ```
    """

    def __init__(self):
        """Initialize event bus."""
        self._subscribers: Dict[Type, List[EventHandler]] = {}
        self._lock = threading.Lock()
        self._event_count: Dict[Type, int] = {}
        self._start_time = time.time()

        logger.info("EventBus initialized")

    def subscribe(self, event_type: Type[EventType], handler: EventHandler) -> None:
        """Register handler for event type.

        Args:
            event_type: The event class to subscribe to (e.g., BlobTrackedEvent)
            handler: Callback function that takes event as parameter
        """
        with self._lock:
            if event_type not in self._subscribers:
                self._subscribers[event_type] = []
                self._event_count[event_type] = 0

            self._subscribers[event_type].append(handler)
            logger.debug(f"Subscribed handler to {event_type.__name__} "
                        f"({len(self._subscribers[event_type])} total subscribers)")

    def unsubscribe(self, event_type: Type[EventType], handler: EventHandler) -> bool:
        """Unregister handler for event type.

        Returns:
            True if handler was found and removed, False otherwise
        """
        with self._lock:
            if event_type not in self._subscribers:
                return False

            try:
                self._subscribers[event_type].remove(handler)
                logger.debug(f"Unsubscribed handler from {event_type.__name__} "
                           f"({len(self._subscribers[event_type])} remaining)")
                return True
            except ValueError:
                return False

    def publish(self, event: EventType) -> None:
        """Publish event to all subscribers.

        Handlers are called synchronously on the publisher's thread.
        If a handler raises an exception, it is logged and other handlers
        still execute.
        """
        event_type = type(event)

        # Copy handler list inside lock (fast)
        with self._lock:
            handlers = self._subscribers.get(event_type, []).copy()
            self._event_count[event_type] = self._event_count.get(event_type, 0) + 1

        if not handlers:
            return

        failed_handlers = 0
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                failed_handlers += 1
                handler_name = getattr(handler, "__name__", repr(handler))
                logger.error(
                    f"Event handler error for {event_type.__name__}: "
                    f"{e.__class__.__name__}: {e}"
                )
                publish_error(
                    category=ErrorCategory.SYSTEM,
                    severity=ErrorSeverity.WARNING,
                    message=f"Event handler failed: {e}",
                    source="EventBus",
                    exception=e,
                    event=event_type.__name__,
                    handler=handler_name,
                )

        if failed_handlers > 0:
            logger.warning(f"{failed_handlers}/{len(handlers)} handlers failed for {event_type.__name__}")

    def get_subscriber_count(self, event_type: Type[EventType]) -> int:
        """Get number of subscribers for an event type."""
        with self._lock:
            return len(self._subscribers.get(event_type, []))

    def has_subscribers(self, event_type: Type[EventType]) -> bool:
        return self.get_subscriber_count(event_type) > 0

    def get_stats(self) -> Dict[str, Any]:
        """Get event bus statistics.

        Returns:
            Dict with statistics:
            - event_types: Number of event types registered
            - total_subscribers: Total number of subscriptions
            - event_counts: Dict of event_type -> publish count
            - uptime_seconds: Time since bus creation
        """
        with self._lock:
            stats = {
                "event_types": len(self._subscribers),
                "total_subscribers": sum(len(handlers) for handlers in self._subscribers.values()),
                "event_counts": {
                    event_type.__name__: count
                    for event_type, count in self._event_count.items()
                },
                "uptime_seconds": time.time() - self._start_time
            }
        return stats

    def clear_all_subscribers(self) -> None:
        """Remove all subscribers (useful for testing)."""
        with self._lock:
            self._subscribers.clear()
            self._event_count.clear()
            logger.warning("Cleared all EventBus subscribers")

    def __repr__(self) -> str:
        """String representation of EventBus state."""
        stats = self.get_stats()
        return (f"EventBus(event_types={stats['event_types']}, "
                f"subscribers={stats['total_subscribers']}, "
                f"uptime={stats['uptime_seconds']:.1f}s)")
