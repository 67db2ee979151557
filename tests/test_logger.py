"""
Tests for logging setup.
"""

import logging
import logging.handlers

import pytest

from gesture_trainer.core.errors import CameraError
from gesture_trainer.core.events import EventBus, Events
from gesture_trainer.core.types import GestureLabel
from gesture_trainer.utils.logger import setup_logging, log_timing, SessionEventLogger


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Test suite for setup_logging."""

    def test_console_only(self, restore_root_logger):
        root = setup_logging(level="warning")

        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)

    def test_rotating_file(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "trainer.log"
        root = setup_logging(level="DEBUG", log_file=str(log_file), max_size_mb=1, backup_count=2)

        file_handlers = [h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024 * 1024
        assert file_handlers[0].backupCount == 2

        logging.getLogger("gesture_trainer.test").debug("hello")
        file_handlers[0].flush()
        assert "hello" in log_file.read_text()

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        assert setup_logging(level="chatty").level == logging.INFO

    def test_file_receives_debug_while_console_stays_quiet(self, restore_root_logger, tmp_path):
        root = setup_logging(level="INFO", log_file=str(tmp_path / "trainer.log"))

        assert root.level == logging.DEBUG
        console = [h for h in root.handlers if type(h) is logging.StreamHandler][0]
        assert console.level == logging.INFO

    def test_noisy_loggers_quieted(self, restore_root_logger):
        setup_logging(level="DEBUG")
        assert logging.getLogger("absl").level == logging.WARNING


class TestLogTiming:
    """Test suite for log_timing."""

    def test_preserves_result_and_name(self):
        @log_timing
        def load():
            return 7

        assert load() == 7
        assert load.__name__ == "load"


class TestSessionEventLogger:
    """Test suite for the session notification listener."""

    @pytest.fixture
    def bus(self):
        return EventBus()

    def test_counts_gestures(self, bus, caplog):
        notifier = SessionEventLogger(bus)
        with caplog.at_level(logging.INFO, logger="gesture_trainer.session.events"):
            bus.emit(Events.GESTURE_RECOGNIZED, label=GestureLabel.POINT, progress=2)
            bus.emit(Events.GESTURE_RECOGNIZED, label=GestureLabel.POINT, progress=4)
            bus.emit(Events.GESTURE_RECOGNIZED, label=GestureLabel.PEACE, progress=6)

        assert notifier.total_gestures == 3
        assert notifier.gesture_counts[GestureLabel.POINT] == 2
        assert notifier.summary() == "Recognized 3 gestures: Point x2, Peace x1"
        assert sum("New gesture" in r.message for r in caplog.records) == 2

    def test_errors_logged(self, bus, caplog):
        SessionEventLogger(bus)
        error = CameraError("Failed to access camera")
        with caplog.at_level(logging.ERROR, logger="gesture_trainer.session.events"):
            bus.emit(Events.CAMERA_ERROR, error=error, message=str(error))

        assert "Failed to access camera" in caplog.text

    def test_reset_clears_counts(self, bus):
        notifier = SessionEventLogger(bus)
        bus.emit(Events.GESTURE_RECOGNIZED, label=GestureLabel.POINT, progress=2)
        bus.emit(Events.SESSION_RESET)

        assert notifier.total_gestures == 0
        assert notifier.summary() == "No gestures recognized"

    def test_detach(self, bus):
        notifier = SessionEventLogger(bus)
        assert bus.listener_count == 7

        notifier.detach()
        assert bus.listener_count == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
