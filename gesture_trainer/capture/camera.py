"""
Camera Capture
===============

OpenCV webcam adapter for the training loop. Requests 640x480 @ 60fps and
mirrors the image so the preview moves with the user's hand. Every delivered
frame carries an increasing frame number; with threaded capture the loop may
see the same frame twice, which the session controller detects and skips.
"""

import time
import logging
import threading
from collections import deque
from dataclasses import dataclass
from functools import cached_property
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


@dataclass
class CameraConfig:
    """Camera configuration settings."""
    device_id: int = 0
    width: int = 640
    height: int = 480
    fps: int = 60
    buffer_size: int = 1      # Driver-side queue; 1 keeps frames fresh
    threaded: bool = True
    flip_horizontal: bool = True
    warmup_frames: int = 5    # Discarded while exposure settles

    @classmethod
    def from_dict(cls, config: dict) -> "CameraConfig":
        """Create config from dictionary (YAML parsed)."""
        defaults = cls()
        return cls(
            device_id=config.get("device_id", defaults.device_id),
            width=config.get("width", defaults.width),
            height=config.get("height", defaults.height),
            fps=config.get("fps", defaults.fps),
            buffer_size=config.get("buffer_size", defaults.buffer_size),
            threaded=config.get("threaded", defaults.threaded),
            flip_horizontal=config.get("flip_horizontal", defaults.flip_horizontal),
            warmup_frames=config.get("warmup_frames", defaults.warmup_frames),
        )


@dataclass
class Frame:
    """A captured BGR image with its capture time and sequence number."""
    image: np.ndarray
    timestamp: float
    frame_number: int

    @cached_property
    def rgb(self) -> np.ndarray:
        """RGB copy for the detector (converted once per frame)."""
        return cv2.cvtColor(self.image, cv2.COLOR_BGR2RGB)

    @property
    def size(self) -> Tuple[int, int]:
        height, width = self.image.shape[:2]
        return width, height


class Camera:
    """
    Webcam source for the session controller.

    start() returns False instead of raising when the device cannot be used;
    ``failure_reason`` then says why.

    Example:
        >>> camera = Camera(CameraConfig())
        >>> if camera.start():
        ...     frame = camera.read()
        >>> camera.stop()
    """

    def __init__(self, config: Optional[CameraConfig] = None):
        self.config = config or CameraConfig()
        self.failure_reason: Optional[str] = None

        self._cap: Optional[cv2.VideoCapture] = None
        self._running = False
        self._frame_number = 0
        self._frames_dropped = 0

        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._latest: Optional[Frame] = None

        self._read_times = deque(maxlen=30)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Open the device, warm it up and begin delivering frames."""
        if self._running:
            return True

        self.failure_reason = None
        cap = self._open()
        if cap is None:
            return False

        for _ in range(self.config.warmup_frames):
            cap.read()

        self._cap = cap
        self._frame_number = 0
        self._frames_dropped = 0
        self._latest = None
        self._running = True

        if self.config.threaded:
            self._thread = threading.Thread(target=self._capture_loop, name="camera-capture", daemon=True)
            self._thread.start()
        return True

    def _open(self) -> Optional[cv2.VideoCapture]:
        cfg = self.config
        logger.info("Opening camera %d (%dx%d@%dfps requested)", cfg.device_id, cfg.width, cfg.height, cfg.fps)

        cap = cv2.VideoCapture(cfg.device_id)
        if not cap.isOpened():
            return self._reject(cap, f"Camera {cfg.device_id} could not be opened "
                                     f"(missing device or permission denied)")

        for prop, value in (
            (cv2.CAP_PROP_FRAME_WIDTH, cfg.width),
            (cv2.CAP_PROP_FRAME_HEIGHT, cfg.height),
            (cv2.CAP_PROP_FPS, cfg.fps),
            (cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size),
        ):
            cap.set(prop, value)

        ok, image = cap.read()
        if not ok or image is None:
            return self._reject(cap, f"Camera {cfg.device_id} opened but delivered no frames "
                                     f"(device busy?)")

        logger.info("Camera %d streaming at %dx%d@%.0ffps", cfg.device_id,
                    int(cap.get(cv2.CAP_PROP_FRAME_WIDTH)),
                    int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT)),
                    cap.get(cv2.CAP_PROP_FPS))
        return cap

    def _reject(self, cap: cv2.VideoCapture, reason: str) -> None:
        logger.error(reason)
        cap.release()
        self.failure_reason = reason
        return None

    def stop(self) -> None:
        """Stop delivering frames and release the device."""
        if not self._running and self._cap is None:
            return
        self._running = False

        if self._thread:
            self._thread.join(timeout=1.0)
            self._thread = None

        if self._cap:
            self._cap.release()
            self._cap = None

        with self._lock:
            self._latest = None

        logger.info("Camera stopped after %d frames (%d dropped)",
                    self._frame_number, self._frames_dropped)

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------

    def read(self) -> Optional[Frame]:
        """
        Latest frame, or None when no frame is available yet.

        Threaded mode returns whatever the capture thread stored last, so two
        calls can return the same frame.
        """
        if not self._running:
            return None
        if self.config.threaded:
            with self._lock:
                return self._latest
        return self._grab()

    def _grab(self) -> Optional[Frame]:
        if self._cap is None:
            return None

        started = time.perf_counter()
        ok, image = self._cap.read()
        self._read_times.append(time.perf_counter() - started)

        if not ok or image is None:
            self._frames_dropped += 1
            if self._frames_dropped == 1:
                logger.warning("Camera returned an empty frame")
            return None

        if self.config.flip_horizontal:
            image = cv2.flip(image, 1)

        self._frame_number += 1
        return Frame(image=image, timestamp=time.time(), frame_number=self._frame_number)

    def _capture_loop(self) -> None:
        while self._running:
            frame = self._grab()
            if frame is not None:
                with self._lock:
                    self._latest = frame

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def resolution(self) -> Tuple[int, int]:
        """Requested resolution (width, height)."""
        return (self.config.width, self.config.height)

    @property
    def frames_captured(self) -> int:
        return self._frame_number

    @property
    def frames_dropped(self) -> int:
        return self._frames_dropped

    @property
    def avg_read_time_ms(self) -> float:
        """Average time spent in VideoCapture.read()."""
        if not self._read_times:
            return 0.0
        return (sum(self._read_times) / len(self._read_times)) * 1000

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
