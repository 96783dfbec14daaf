"""Periodic check that the synchronizer keeps up with its substreams."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from app.events import ErrorCategory, ErrorSeverity, publish_error
from configs.settings import WatchdogConfig
from contracts import StreamId
from log_config.logger import get_logger
from sync.synchronizer import SyncCounters

logger = get_logger(__name__)


@dataclass(frozen=True)
class DesyncReport:
    emitted: int
    threshold: int
    received: Dict[StreamId, int]
    lagging: Dict[StreamId, int]


class DesyncWatchdog:
    """Warn when a substream outpaces the emitted tuples by a fixed factor.

    The watchdog only reads counter snapshots, so it can run late or not at
    all without affecting tracking.
    """

    def __init__(
        self,
        counters: Callable[[], SyncCounters],
        config: Optional[WatchdogConfig] = None,
    ) -> None:
        self._counters = counters
        self._config = config or WatchdogConfig()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_report: Optional[DesyncReport] = None

    @property
    def last_report(self) -> Optional[DesyncReport]:
        return self._last_report

    def check(self) -> Optional[DesyncReport]:
        """Compare counters once; return a report if any substream is lagging."""
        snapshot = self._counters()
        threshold = self._config.imbalance_factor * snapshot.emitted
        received = snapshot.received()
        lagging = {stream: count for stream, count in received.items() if count > threshold}
        if not lagging:
            return None

        report = DesyncReport(
            emitted=snapshot.emitted,
            threshold=threshold,
            received=received,
            lagging=lagging,
        )
        self._last_report = report
        counts = "\n".join(f"  {stream.value} received: {count}" for stream, count in received.items())
        logger.warning(
            f"Low number of synchronized frame tuples received.\n"
            f"{counts}\n"
            f"  Synchronized tuples: {snapshot.emitted}\n"
            f"Possible issues:\n"
            f"  * the disparity producer is not running\n"
            f"  * the cameras are not synchronized\n"
            f"  * the network is too slow and drops messages from each tuple"
        )
        publish_error(
            category=ErrorCategory.SYNC,
            severity=ErrorSeverity.WARNING,
            message=f"Substreams out of sync: {', '.join(s.value for s in lagging)}",
            source="DesyncWatchdog",
            emitted=snapshot.emitted,
            lagging={s.value: n for s, n in lagging.items()},
        )
        return report

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Desync watchdog already running")
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="DesyncWatchdog", daemon=True)
        self._thread.start()
        logger.info(f"Desync watchdog started (every {self._config.interval_s:.1f}s)")

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=2.0)
        self._thread = None
        logger.info("Desync watchdog stopped")

    def _loop(self) -> None:
        while not self._stop_event.wait(self._config.interval_s):
            try:
                self.check()
            except Exception as e:
                logger.error(f"Error in desync watchdog: {e}")
