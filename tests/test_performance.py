"""
Tests for Performance Module
=============================
"""

import pytest

from gesture_trainer.utils.performance import PerformanceMonitor


class FakeClock:
    def __init__(self, *values):
        self.values = list(values)

    def __call__(self):
        return self.values.pop(0)


class TestPerformanceMonitor:
    """Test suite for PerformanceMonitor class."""

    @pytest.fixture
    def monitor(self):
        return PerformanceMonitor(window_size=60)

    def test_fps_needs_two_frames(self, monitor):
        assert monitor.fps == 0.0
        monitor.record_frame(1.0)
        assert monitor.fps == 0.0

    def test_fps_from_window(self, monitor):
        """61 timestamps at 60Hz: window keeps 60, fps is 60."""
        for i in range(61):
            monitor.record_frame(i / 60.0)

        assert monitor.window_length == 60
        assert monitor.timestamps[0] == pytest.approx(1 / 60.0)
        assert monitor.fps == pytest.approx(60.0)
        assert monitor.total_frames == 61

    def test_zero_spread(self, monitor):
        monitor.record_frame(5.0)
        monitor.record_frame(5.0)
        assert monitor.fps == 0.0

    def test_latency(self, monitor):
        monitor.record_frame(1.0, latency_ms=12.5)
        monitor.record_frame(2.0)
        assert monitor.latency_ms == 12.5

    def test_stage_timing(self):
        # capture takes 2ms, detection 10ms, each measured twice
        monitor = PerformanceMonitor(clock=FakeClock(0.0, 0.002, 1.0, 1.010, 2.0, 2.002, 3.0, 3.010))
        for _ in range(2):
            with monitor.measure("capture"):
                pass
            with monitor.measure("detection"):
                pass

        assert monitor.stage_time_ms("capture") == pytest.approx(2.0)
        assert monitor.stage_time_ms("detection") == pytest.approx(10.0)
        assert monitor.stage_time_ms("missing") == 0.0

    def test_skips(self, monitor):
        monitor.record_skip()
        monitor.record_skip()
        assert monitor.skipped_frames == 2
        assert monitor.total_frames == 0

    def test_report(self, monitor):
        with monitor.measure("detection"):
            pass
        monitor.record_frame(1.0, latency_ms=3.0)

        report = monitor.get_report()
        assert "FPS" in report
        assert "Latency" in report
        assert "detection" in report

    def test_reset(self, monitor):
        monitor.record_frame(1.0)
        monitor.record_frame(2.0)
        monitor.record_skip()
        monitor.reset()

        assert monitor.window_length == 0
        assert monitor.total_frames == 0
        assert monitor.skipped_frames == 0
        assert monitor.fps == 0.0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
