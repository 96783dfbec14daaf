"""Tracking service wiring synchronizer, registry, orchestrator and watchdog."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Optional

import numpy as np

from app.events.event_bus import EventBus
from app.orchestrator import TrackingOrchestrator
from app.preload import PreloadResult, preload_models
from app.registry import ObjectRegistry
from configs.settings import AppConfig
from contracts import FrameTuple, StreamId, Vector3
from exceptions import RegistryError
from log_config.logger import get_logger
from sync.synchronizer import StreamSynchronizer, build_synchronizer
from sync.watchdog import DesyncWatchdog
from track.tracker import Tracker

logger = get_logger(__name__)


class TrackingService:
    """Entry point for a sensor transport and a request channel.

    The transport calls ``push`` from its single delivery context. Requests
    (``add_object``, ``list_objects``, ``remove_object``) may come from any
    other thread; the registry serializes them against frame processing.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        bus: Optional[EventBus] = None,
        tracker: Optional[Tracker] = None,
    ) -> None:
        self.config = config or AppConfig()
        self.bus = bus or EventBus()
        self.registry = ObjectRegistry(self.config.tracker)
        self.synchronizer: StreamSynchronizer = build_synchronizer(self.config.sync)
        self.orchestrator = TrackingOrchestrator(
            self.registry, self.bus, self.config, tracker=tracker
        )
        self.synchronizer.register_callback(self.orchestrator.process)
        self.watchdog = DesyncWatchdog(self.synchronizer.snapshot, self.config.watchdog)
        self._running = False

    def start(self) -> Optional[PreloadResult]:
        """Preload configured models and start the desync watchdog."""
        if self._running:
            logger.warning("Tracking service already running")
            return None
        result = None
        models_path = self.config.preload.models_path
        if models_path:
            result = preload_models(self.registry, Path(models_path))
        self.watchdog.start()
        self._running = True
        logger.info("Tracking service started")
        return result

    def stop(self) -> None:
        if not self._running:
            return
        self.watchdog.stop()
        self._running = False
        logger.info("Tracking service stopped")

    def push(self, stream: StreamId | str, timestamp: float, message: Any) -> List[FrameTuple]:
        """Deliver one substream message; completed tuples are processed immediately."""
        return self.synchronizer.add(stream, timestamp, message)

    def add_object(self, name: str, anchor: Vector3, image: Optional[np.ndarray]) -> bool:
        try:
            self.registry.register(name, anchor, image)
        except RegistryError as e:
            logger.error(f"Failed to add object {name}: {e}")
            return False
        return True

    def list_objects(self) -> List[str]:
        return self.registry.names()

    def remove_object(self, name: str) -> None:
        self.registry.remove(name)

    def __enter__(self) -> "TrackingService":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
