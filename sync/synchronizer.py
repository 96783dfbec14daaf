"""Alignment of the five stereo substreams into frame tuples.

Synchronizers are fed from a single delivery context and are not safe for
concurrent writers. Their counters are published as an immutable
``SyncCounters`` snapshot that other threads may read at any time.
"""

from __future__ import annotations

import bisect
from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from configs.settings import SyncConfig
from contracts import FrameTuple, StreamId
from exceptions import UnknownStreamError
from log_config.logger import get_logger

logger = get_logger(__name__)

FrameCallback = Callable[[FrameTuple], None]


@dataclass(frozen=True)
class SyncCounters:
    left_image: int = 0
    left_camera_info: int = 0
    right_image: int = 0
    right_camera_info: int = 0
    disparity: int = 0
    emitted: int = 0

    def received(self) -> Dict[StreamId, int]:
        return {stream: getattr(self, stream.value) for stream in StreamId}


def _assemble(timestamp: float, messages: Dict[StreamId, Any]) -> FrameTuple:
    return FrameTuple(
        timestamp=timestamp,
        left_image=messages.get(StreamId.LEFT_IMAGE),
        right_image=messages.get(StreamId.RIGHT_IMAGE),
        left_camera_info=messages.get(StreamId.LEFT_CAMERA_INFO),
        right_camera_info=messages.get(StreamId.RIGHT_CAMERA_INFO),
        disparity=messages.get(StreamId.DISPARITY),
    )


class StreamSynchronizer(ABC):
    def __init__(self, queue_size: int) -> None:
        self._queue_size = queue_size
        self._callbacks: List[FrameCallback] = []
        self._counters = SyncCounters()

    @property
    def queue_size(self) -> int:
        return self._queue_size

    def register_callback(self, callback: FrameCallback) -> None:
        self._callbacks.append(callback)

    def snapshot(self) -> SyncCounters:
        return self._counters

    def add(self, stream: StreamId | str, timestamp: float, message: Any) -> List[FrameTuple]:
        """Feed one message and return the frame tuples it completed."""
        try:
            stream = StreamId(stream)
        except ValueError:
            raise UnknownStreamError(f"Unknown substream: {stream}", stream=str(stream))

        self._counters = replace(
            self._counters, **{stream.value: getattr(self._counters, stream.value) + 1}
        )
        frames = self._add(stream, float(timestamp), message)
        for frame in frames:
            self._counters = replace(self._counters, emitted=self._counters.emitted + 1)
            for callback in self._callbacks:
                callback(frame)
        return frames

    @abstractmethod
    def _add(self, stream: StreamId, timestamp: float, message: Any) -> List[FrameTuple]:
        """Buffer a message and return any completed tuples."""


class ExactTimeSynchronizer(StreamSynchronizer):
    """Emit a tuple only when all substreams carry the same timestamp."""

    def __init__(self, queue_size: int = 3) -> None:
        super().__init__(queue_size)
        self._queues: Dict[StreamId, "OrderedDict[float, Any]"] = {
            stream: OrderedDict() for stream in StreamId
        }

    def _add(self, stream: StreamId, timestamp: float, message: Any) -> List[FrameTuple]:
        queue = self._queues[stream]
        queue[timestamp] = message
        while len(queue) > self._queue_size:
            oldest = min(queue)
            del queue[oldest]
            logger.debug(f"Dropped {stream.value} message at {oldest} (queue full)")

        if not all(timestamp in q for q in self._queues.values()):
            return []

        messages = {s: q.pop(timestamp) for s, q in self._queues.items()}
        for q in self._queues.values():
            for stale in [t for t in q if t < timestamp]:
                del q[stale]
        return [_assemble(timestamp, messages)]


class ApproximateTimeSynchronizer(StreamSynchronizer):
    """Emit the best aligned group whose timestamps span at most ``slack_s``."""

    def __init__(self, queue_size: int = 100, slack_s: float = 0.02) -> None:
        super().__init__(queue_size)
        self._slack_s = slack_s
        self._queues: Dict[StreamId, List[Tuple[float, Any]]] = {stream: [] for stream in StreamId}

    def _add(self, stream: StreamId, timestamp: float, message: Any) -> List[FrameTuple]:
        queue = self._queues[stream]
        keys = [t for t, _ in queue]
        queue.insert(bisect.bisect_right(keys, timestamp), (timestamp, message))
        if len(queue) > self._queue_size:
            dropped, _ = queue.pop(0)
            logger.debug(f"Dropped {stream.value} message at {dropped} (queue full)")

        frames: List[FrameTuple] = []
        while all(self._queues.values()):
            frame = self._match_once()
            if frame is None:
                continue
            frames.append(frame)
        return frames

    def _match_once(self) -> Optional[FrameTuple]:
        pivot = max(q[0][0] for q in self._queues.values())
        chosen: Dict[StreamId, int] = {}
        for stream, queue in self._queues.items():
            chosen[stream] = min(range(len(queue)), key=lambda i: abs(queue[i][0] - pivot))
        times = [self._queues[s][i][0] for s, i in chosen.items()]

        if max(times) - min(times) > self._slack_s:
            # The oldest head can no longer be part of a group within the slack.
            oldest = min(self._queues, key=lambda s: self._queues[s][0][0])
            self._queues[oldest].pop(0)
            return None

        messages = {}
        for stream, index in chosen.items():
            messages[stream] = self._queues[stream][index][1]
            del self._queues[stream][: index + 1]
        left_stamp = times[list(chosen).index(StreamId.LEFT_IMAGE)]
        return _assemble(left_stamp, messages)


def build_synchronizer(config: Optional[SyncConfig] = None) -> StreamSynchronizer:
    config = config or SyncConfig()
    if config.policy == "approximate":
        logger.info("Starting in approximate sync mode")
        return ApproximateTimeSynchronizer(
            queue_size=config.approximate_queue_size,
            slack_s=config.approximate_slack_ms / 1000.0,
        )
    logger.info("Starting in exact sync mode")
    return ExactTimeSynchronizer(queue_size=config.exact_queue_size)
