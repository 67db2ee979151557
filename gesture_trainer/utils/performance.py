"""
Performance Monitoring Module
==============================

Per-frame latency, rolling FPS and per-stage timings for the frame loop.
"""

import time
import logging
from collections import deque
from contextlib import contextmanager
from typing import Optional, Dict, Callable, Deque

logger = logging.getLogger(__name__)


class PerformanceMonitor:
    """
    Frame-rate and latency tracking for the gesture pipeline.

    FPS comes from a rolling window of frame timestamps (seconds): the number
    of intervals in the window divided by the spread between its first and
    last entry.

    Example:
        >>> monitor = PerformanceMonitor(window_size=60)
        >>> with monitor.measure("detection"):
        ...     hands = detector.detect(image, ts)
        >>> monitor.record_frame(time.perf_counter(), latency_ms=4.2)
        >>> monitor.fps
    """

    def __init__(self, window_size: int = 60, clock: Callable[[], float] = time.perf_counter):
        self.window_size = window_size
        self._clock = clock
        self._timestamps: Deque[float] = deque(maxlen=window_size)
        self._stage_times: Dict[str, deque] = {}
        self._latency_ms: float = 0.0
        self._total_frames: int = 0
        self._skipped_frames: int = 0

    def record_frame(self, timestamp: float, latency_ms: Optional[float] = None) -> None:
        """Append a processed frame's timestamp, evicting the oldest beyond the window."""
        self._timestamps.append(timestamp)
        self._total_frames += 1
        if latency_ms is not None:
            self._latency_ms = latency_ms

    def record_skip(self) -> None:
        """Record a tick that had no new frame to process."""
        self._skipped_frames += 1

    @contextmanager
    def measure(self, stage: str):
        """
        Context manager to measure a processing stage.

        Args:
            stage: Name of the stage (e.g., "capture", "detection")
        """
        start = self._clock()
        try:
            yield
        finally:
            elapsed = self._clock() - start
            if stage not in self._stage_times:
                self._stage_times[stage] = deque(maxlen=self.window_size)
            self._stage_times[stage].append(elapsed)

    @property
    def fps(self) -> float:
        """Frames per second over the timestamp window."""
        if len(self._timestamps) < 2:
            return 0.0
        spread = self._timestamps[-1] - self._timestamps[0]
        if spread <= 0:
            return 0.0
        return (len(self._timestamps) - 1) / spread

    @property
    def window_length(self) -> int:
        return len(self._timestamps)

    @property
    def timestamps(self) -> list:
        return list(self._timestamps)

    @property
    def latency_ms(self) -> float:
        """Latency of the most recent processed frame."""
        return self._latency_ms

    @property
    def total_frames(self) -> int:
        return self._total_frames

    @property
    def skipped_frames(self) -> int:
        return self._skipped_frames

    def stage_time_ms(self, stage: str) -> float:
        """Get average time for a specific stage in milliseconds."""
        times = self._stage_times.get(stage)
        if not times:
            return 0.0
        return (sum(times) / len(times)) * 1000

    def get_report(self) -> str:
        """Get formatted performance report string."""
        stages = "".join(
            f"  {name}: {self.stage_time_ms(name):.2f}ms\n" for name in sorted(self._stage_times)
        )
        return (
            f"Performance Report\n"
            f"{'=' * 40}\n"
            f"FPS: {self.fps:.1f}\n"
            f"Latency: {self.latency_ms:.1f}ms\n"
            f"\nPer-Stage Breakdown:\n"
            f"{stages}"
            f"\nFrame Stats:\n"
            f"  Processed: {self._total_frames}\n"
            f"  Skipped: {self._skipped_frames}\n"
        )

    def reset(self) -> None:
        """Clear the window and counters."""
        self._timestamps.clear()
        self._stage_times.clear()
        self._latency_ms = 0.0
        self._total_frames = 0
        self._skipped_frames = 0
