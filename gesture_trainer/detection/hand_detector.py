"""
Hand Detection Module - MediaPipe Tasks API
=============================================

Wraps the MediaPipe HandLandmarker (Tasks API) and converts its results into
Hand records at the detector boundary. Up to two hands are tracked so the
two-hand gestures can be recognized.

The landmarker model is fetched on first use and cached under
``~/.cache/gesture_trainer``.
"""

import logging
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import numpy as np
import mediapipe as mp
from mediapipe.tasks import python
from mediapipe.tasks.python import vision

from gesture_trainer.core.types import Hand, LandmarkPoint, DEFAULT_HANDEDNESS, validate_hands
from gesture_trainer.utils.logger import log_timing

logger = logging.getLogger(__name__)

HAND_LANDMARKER_MODEL_URL = (
    "https://storage.googleapis.com/mediapipe-models/hand_landmarker/"
    "hand_landmarker/float16/1/hand_landmarker.task"
)
DEFAULT_MODEL_PATH = Path.home() / ".cache" / "gesture_trainer" / "hand_landmarker.task"

# Assumed frame spacing when the caller gives no timestamp (60 FPS)
FRAME_INTERVAL_MS = 16


@dataclass
class HandDetectorConfig:
    """Configuration for hand detector."""
    model_path: str = ""             # Empty: DEFAULT_MODEL_PATH, downloaded on demand
    max_num_hands: int = 2
    min_detection_confidence: float = 0.7
    min_presence_confidence: float = 0.7
    min_tracking_confidence: float = 0.5
    running_mode: str = "VIDEO"      # IMAGE or VIDEO

    @classmethod
    def from_dict(cls, d: dict) -> "HandDetectorConfig":
        """Create config from the ``mediapipe`` section of config.yaml."""
        defaults = cls()
        return cls(
            model_path=d.get("model_path") or "",
            max_num_hands=d.get("max_num_hands", defaults.max_num_hands),
            min_detection_confidence=d.get("min_detection_confidence", defaults.min_detection_confidence),
            min_presence_confidence=d.get("min_presence_confidence", defaults.min_presence_confidence),
            min_tracking_confidence=d.get("min_tracking_confidence", defaults.min_tracking_confidence),
            running_mode=str(d.get("running_mode", defaults.running_mode)).upper(),
        )


def download_model(url: str, save_path: Path) -> None:
    """
    Fetch the landmarker model to ``save_path``.

    The file is written next to its destination and renamed on success, so an
    interrupted download never leaves a truncated model behind.

    Raises:
        OSError: network or filesystem failure
    """
    save_path.parent.mkdir(parents=True, exist_ok=True)
    partial = save_path.with_name(save_path.name + ".part")
    logger.info("Downloading hand landmarker model to %s", save_path)
    try:
        urllib.request.urlretrieve(url, partial)
        partial.replace(save_path)
    finally:
        if partial.exists():
            partial.unlink()
    logger.info("Model download complete (%d bytes)", save_path.stat().st_size)


def convert_result(result) -> List[Hand]:
    """Convert a HandLandmarkerResult into validated Hand records."""
    handedness_lists = result.handedness or []
    raw = []
    for i, hand_landmarks in enumerate(result.hand_landmarks or []):
        categories = handedness_lists[i] if i < len(handedness_lists) else None
        best = categories[0] if categories else None

        raw.append(Hand(
            landmarks=[LandmarkPoint(x=lm.x, y=lm.y, z=lm.z) for lm in hand_landmarks],
            handedness=(best.category_name if best else None) or DEFAULT_HANDEDNESS,
            confidence=(best.score if best else None) or 0.0,
        ))
    return validate_hands(raw)


class HandDetector:
    """
    Hand detection wrapper using MediaPipe Tasks API (HandLandmarker).

    start() returns False when the model cannot be fetched or loaded;
    ``failure_reason`` then holds the cause for the user-facing error.

    Example:
        >>> detector = HandDetector(HandDetectorConfig())
        >>> detector.start()
        >>> hands = detector.detect(rgb_image, timestamp_ms)  # RGB format!
        >>> detector.stop()
    """

    def __init__(self, config: Optional[HandDetectorConfig] = None):
        self.config = config or HandDetectorConfig()
        self.failure_reason: Optional[str] = None
        self._landmarker: Optional[vision.HandLandmarker] = None
        self._last_timestamp_ms = 0

    @property
    def video_mode(self) -> bool:
        return self.config.running_mode != "IMAGE"

    def _resolve_model_path(self) -> Path:
        """Configured model path, downloading the default model if missing."""
        if self.config.model_path:
            path = Path(self.config.model_path).expanduser()
            if not path.exists():
                raise FileNotFoundError(f"model not found at {path}")
            return path

        if not DEFAULT_MODEL_PATH.exists():
            download_model(HAND_LANDMARKER_MODEL_URL, DEFAULT_MODEL_PATH)
        return DEFAULT_MODEL_PATH

    @log_timing
    def start(self) -> bool:
        """Load the hand landmarker. Returns False on failure."""
        if self._landmarker is not None:
            return True

        self.failure_reason = None
        try:
            model_path = self._resolve_model_path()
            options = vision.HandLandmarkerOptions(
                base_options=python.BaseOptions(model_asset_path=str(model_path)),
                running_mode=vision.RunningMode.VIDEO if self.video_mode else vision.RunningMode.IMAGE,
                num_hands=self.config.max_num_hands,
                min_hand_detection_confidence=self.config.min_detection_confidence,
                min_hand_presence_confidence=self.config.min_presence_confidence,
                min_tracking_confidence=self.config.min_tracking_confidence,
            )
            self._landmarker = vision.HandLandmarker.create_from_options(options)
        except Exception as e:
            self.failure_reason = f"{type(e).__name__}: {e}"
            logger.error("Failed to initialize HandLandmarker: %s", self.failure_reason)
            self._landmarker = None
            return False

        self._last_timestamp_ms = 0
        logger.info("HandLandmarker ready (model=%s, mode=%s, max hands=%d)",
                    model_path.name, self.config.running_mode, self.config.max_num_hands)
        return True

    def stop(self) -> None:
        """Release resources."""
        if self._landmarker is None:
            return
        self._landmarker.close()
        self._landmarker = None
        logger.info("HandLandmarker stopped")

    @property
    def is_ready(self) -> bool:
        return self._landmarker is not None

    def detect(self, image: np.ndarray, timestamp_ms: Optional[int] = None) -> List[Hand]:
        """
        Detect hands in the given image.

        Args:
            image: RGB image as numpy array (H, W, 3)
            timestamp_ms: Timestamp in milliseconds (VIDEO mode). Omitted,
                the previous timestamp plus one frame interval is used.

        Returns:
            List of validated Hand records (possibly empty)
        """
        if self._landmarker is None:
            logger.warning("HandLandmarker not initialized. Call start() first.")
            return []

        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=np.ascontiguousarray(image))

        if not self.video_mode:
            return convert_result(self._landmarker.detect(mp_image))

        if timestamp_ms is None:
            timestamp_ms = self._last_timestamp_ms + FRAME_INTERVAL_MS
        # VIDEO mode rejects non-increasing timestamps
        timestamp_ms = max(int(timestamp_ms), self._last_timestamp_ms + 1)
        self._last_timestamp_ms = timestamp_ms
        return convert_result(self._landmarker.detect_for_video(mp_image, timestamp_ms))

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False
