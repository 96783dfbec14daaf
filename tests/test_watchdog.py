from __future__ import annotations

import time

from app.events import ErrorCategory
from configs.settings import WatchdogConfig
from contracts import StreamId
from sync import DesyncWatchdog, SyncCounters


def counters(received: int, emitted: int, **overrides) -> SyncCounters:
    values = {stream.value: received for stream in StreamId}
    values.update(overrides)
    return SyncCounters(emitted=emitted, **values)


def test_balanced_streams_are_quiet(error_bus) -> None:
    watchdog = DesyncWatchdog(lambda: counters(received=12, emitted=4))
    assert watchdog.check() is None
    assert error_bus.get_history(ErrorCategory.SYNC) == []


def test_lagging_stream_is_reported(error_bus) -> None:
    watchdog = DesyncWatchdog(lambda: counters(received=9, emitted=3, disparity=10))
    report = watchdog.check()

    assert report is not None
    assert report.threshold == 9
    assert report.lagging == {StreamId.DISPARITY: 10}
    assert watchdog.last_report is report

    events = error_bus.get_history(ErrorCategory.SYNC)
    assert len(events) == 1
    assert events[0].metadata["lagging"] == {"disparity": 10}


def test_nothing_emitted_with_traffic_is_reported(error_bus) -> None:
    report = DesyncWatchdog(lambda: counters(received=1, emitted=0)).check()
    assert report is not None
    assert set(report.lagging) == set(StreamId)


def test_no_traffic_is_quiet(error_bus) -> None:
    assert DesyncWatchdog(lambda: SyncCounters()).check() is None


def test_factor_is_configurable(error_bus) -> None:
    watchdog = DesyncWatchdog(
        lambda: counters(received=10, emitted=3), WatchdogConfig(imbalance_factor=4)
    )
    assert watchdog.check() is None


def test_background_loop_checks_periodically(error_bus) -> None:
    calls = []

    def snapshot() -> SyncCounters:
        calls.append(1)
        return SyncCounters()

    watchdog = DesyncWatchdog(snapshot, WatchdogConfig(interval_s=0.01))
    watchdog.start()
    deadline = time.monotonic() + 2.0
    while not calls and time.monotonic() < deadline:
        time.sleep(0.01)
    watchdog.stop()

    assert calls
