"""
Logging setup for the trainer, plus a listener that turns session events
into log lines (the notifications a user sees in the console).
"""

import os
import time
import logging
import logging.handlers
from collections import Counter
from functools import wraps

from gesture_trainer.core.events import Events

CONSOLE_FORMAT = "%(asctime)s  %(levelname)-5s  %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)-7s] %(name)-32s | %(message)s"
DATE_FORMAT = "%H:%M:%S"

# Third-party loggers that flood the console at INFO
NOISY_LOGGERS = ("absl", "mediapipe", "urllib3")


def setup_logging(level="INFO", log_file=None, max_size_mb=10, backup_count=3):
    """Configure the root logger.

    The console shows ``level`` and above. When ``log_file`` is given, a
    rotating file receives everything down to DEBUG.
    """
    console_level = getattr(logging, str(level).upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(logging.DEBUG if log_file else console_level)

    console = logging.StreamHandler()
    console.setLevel(console_level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(console_level, logging.WARNING))

    return root_logger


def log_timing(func):
    """Decorator to log function execution time at DEBUG."""
    logger = logging.getLogger(func.__module__)

    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        elapsed = (time.perf_counter() - start) * 1000
        logger.debug("%s took %.2fms", func.__name__, elapsed)
        return result

    return wrapper


class SessionEventLogger:
    """Logs session notifications and tallies recognized gestures.

    Example:
        >>> notifier = SessionEventLogger(controller.event_bus)
        >>> ...
        >>> print(notifier.summary())
    """

    def __init__(self, bus, logger_name: str = "gesture_trainer.session.events"):
        self.logger = logging.getLogger(logger_name)
        self.gesture_counts = Counter()
        self._unsubscribe = [
            bus.subscribe(Events.DETECTOR_READY, self.on_detector_ready),
            bus.subscribe(Events.DETECTOR_ERROR, self.on_error),
            bus.subscribe(Events.CAMERA_ERROR, self.on_error),
            bus.subscribe(Events.SESSION_STARTED, self.on_started),
            bus.subscribe(Events.SESSION_STOPPED, self.on_stopped),
            bus.subscribe(Events.SESSION_RESET, self.on_reset),
            bus.subscribe(Events.GESTURE_RECOGNIZED, self.on_gesture),
        ]

    def on_detector_ready(self):
        self.logger.info("Hand detector loaded")

    def on_error(self, error, message):
        self.logger.error("%s (press 't' to retry)", message)

    def on_started(self):
        self.logger.info("Gesture training is now active")

    def on_stopped(self, frames):
        self.logger.info("Gesture training paused after %d frames", frames)

    def on_reset(self):
        self.gesture_counts.clear()
        self.logger.info("Progress has been cleared")

    def on_gesture(self, label, progress):
        self.gesture_counts[label] += 1
        if self.gesture_counts[label] == 1:
            self.logger.info("New gesture: %s (progress %d%%)", label.value, progress)
        else:
            self.logger.debug("Gesture %s (progress %d%%)", label.value, progress)

    @property
    def total_gestures(self) -> int:
        return sum(self.gesture_counts.values())

    def summary(self) -> str:
        if not self.gesture_counts:
            return "No gestures recognized"
        parts = ", ".join(f"{label.value} x{count}" for label, count in self.gesture_counts.most_common())
        return f"Recognized {self.total_gestures} gestures: {parts}"

    def detach(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
