"""
Shared domain types for the gesture training pipeline.

Centralizes enums, data classes, and type definitions used across modules
to eliminate circular imports and ensure type consistency. The detector
boundary (validate_hands) also lives here so that loosely shaped detector
output is converted into fixed-shape Hand records before it reaches the core.
"""

import time
import logging
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, List, Tuple, NamedTuple, Sequence, Any

import numpy as np

logger = logging.getLogger(__name__)

NUM_LANDMARKS = 21
DEFAULT_HANDEDNESS = "Right"


# =============================================================================
# Landmarks
# =============================================================================

class LandmarkIndex(IntEnum):
    """Hand landmark indices following MediaPipe convention."""
    WRIST = 0
    THUMB_CMC = 1
    THUMB_MCP = 2
    THUMB_IP = 3
    THUMB_TIP = 4
    INDEX_MCP = 5
    INDEX_PIP = 6
    INDEX_DIP = 7
    INDEX_TIP = 8
    MIDDLE_MCP = 9
    MIDDLE_PIP = 10
    MIDDLE_DIP = 11
    MIDDLE_TIP = 12
    RING_MCP = 13
    RING_PIP = 14
    RING_DIP = 15
    RING_TIP = 16
    PINKY_MCP = 17
    PINKY_PIP = 18
    PINKY_DIP = 19
    PINKY_TIP = 20


class LandmarkPoint(NamedTuple):
    """A single landmark point with normalized coordinates."""
    x: float  # 0.0 to 1.0, normalized by image width
    y: float  # 0.0 to 1.0, normalized by image height
    z: float  # Depth hint, more negative = closer to camera

    def to_pixel(self, width: int, height: int) -> Tuple[int, int]:
        """Convert normalized coordinates to pixel coordinates."""
        return (int(self.x * width), int(self.y * height))

    def to_numpy(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)


@dataclass
class Hand:
    """One detected hand: 21 landmarks, handedness label and confidence.

    Produced fresh each frame at the detector boundary. The pipeline only
    reads it.
    """
    landmarks: List[LandmarkPoint]
    handedness: str = DEFAULT_HANDEDNESS  # "Left" or "Right"
    confidence: float = 0.0

    def get(self, index: LandmarkIndex) -> LandmarkPoint:
        """Get landmark by index."""
        return self.landmarks[index]

    def get_pixel(self, index: LandmarkIndex, width: int, height: int) -> Tuple[int, int]:
        """Get landmark as pixel coordinates."""
        return self.get(index).to_pixel(width, height)

    @property
    def wrist(self) -> LandmarkPoint:
        return self.landmarks[LandmarkIndex.WRIST]

    @property
    def is_complete(self) -> bool:
        return len(self.landmarks) >= NUM_LANDMARKS

    def to_numpy(self) -> np.ndarray:
        """Convert landmarks to numpy array of shape (21, 3)."""
        return np.array([[lm.x, lm.y, lm.z] for lm in self.landmarks])


def _coerce_point(raw: Any) -> LandmarkPoint:
    if isinstance(raw, LandmarkPoint):
        return raw
    if hasattr(raw, "x"):
        return LandmarkPoint(float(raw.x), float(raw.y), float(getattr(raw, "z", 0.0) or 0.0))
    values = list(raw)
    z = values[2] if len(values) > 2 else 0.0
    return LandmarkPoint(float(values[0]), float(values[1]), float(z))


def validate_hand(raw: Any) -> Optional[Hand]:
    """Convert a detector hand record into a Hand, or None if malformed.

    Accepts anything exposing ``landmarks`` (and optionally ``handedness`` and
    ``confidence``), or a bare sequence of points. Hands with fewer than 21
    landmarks are treated as undetected. A missing handedness label falls back
    to "Right".
    """
    if raw is None:
        return None

    raw_landmarks = getattr(raw, "landmarks", raw)
    try:
        points = [_coerce_point(p) for p in raw_landmarks]
    except (TypeError, ValueError, IndexError) as e:
        logger.debug("Dropping malformed hand: %s", e)
        return None

    if len(points) < NUM_LANDMARKS:
        logger.debug("Dropping hand with %d landmarks", len(points))
        return None

    handedness = getattr(raw, "handedness", None)
    if handedness not in ("Left", "Right"):
        handedness = DEFAULT_HANDEDNESS

    try:
        confidence = float(getattr(raw, "confidence", 0.0) or 0.0)
    except (TypeError, ValueError):
        confidence = 0.0
    confidence = min(max(confidence, 0.0), 1.0)

    return Hand(landmarks=points[:NUM_LANDMARKS], handedness=handedness,
                confidence=confidence)


def validate_hands(raw_hands: Optional[Sequence[Any]]) -> List[Hand]:
    """Validate a whole detector result, keeping only well-formed hands."""
    if not raw_hands:
        return []
    hands = []
    for raw in raw_hands:
        hand = validate_hand(raw)
        if hand is not None:
            hands.append(hand)
    return hands


# =============================================================================
# Gesture Labels
# =============================================================================

class GestureLabel(Enum):
    """All gesture labels the classifier can emit."""
    NONE = "None"
    UNKNOWN = "Unknown"
    POINT = "Point"
    CLICK = "Click/Pinch"
    PEACE = "Peace"
    OPEN_PALM = "OpenPalm"
    ZOOM = "ZoomGesture"
    THUMBS_UP = "ThumbsUp"
    GRAB = "Grab&Drag"
    ZOOM_IN = "ZoomIn"
    ZOOM_OUT = "ZoomOut"

    @classmethod
    def from_string(cls, name: str) -> 'GestureLabel':
        """Convert a string label to GestureLabel, safely."""
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_recognized(self) -> bool:
        return self not in (GestureLabel.NONE, GestureLabel.UNKNOWN)

    @property
    def is_two_hand(self) -> bool:
        return self in (GestureLabel.GRAB, GestureLabel.ZOOM_IN, GestureLabel.ZOOM_OUT)

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class TwoHandGestureState:
    """Continuation state for two-hand gestures, carried frame to frame."""
    grab_mode: bool = False
    zoom_distance: Optional[float] = None  # reference pixels
    zoom_label: Optional[GestureLabel] = None  # last zoom label, held inside the hysteresis band


# =============================================================================
# Session
# =============================================================================

class SessionState(Enum):
    """Lifecycle of a training session."""
    IDLE = "idle"          # Nothing acquired
    LOADING = "loading"    # Detector initialization in flight (or failed)
    READY = "ready"        # Detector loaded, camera not started
    ACTIVE = "active"      # Camera running, frame loop scheduled
    STOPPED = "stopped"    # Camera released, loop cancelled


class AdaptiveParams(NamedTuple):
    """Speed-dependent smoothing aggressiveness and look-ahead horizon."""
    smoothing_factor: float
    horizon_frames: int


@dataclass
class SessionMetrics:
    """Per-frame metrics shown by the UI."""
    latency_ms: float = 0.0
    confidence_pct: float = 0.0
    fps: float = 0.0
    gesture_recognized: GestureLabel = GestureLabel.NONE
    prediction_error: float = 0.0
    prediction_accuracy_pct: float = 0.0

    def to_dict(self) -> dict:
        return {
            "latency_ms": round(self.latency_ms, 2),
            "confidence_pct": round(self.confidence_pct),
            "fps": round(self.fps, 1),
            "gesture": self.gesture_recognized.value,
            "prediction_error": round(self.prediction_error, 4),
            "prediction_accuracy_pct": round(self.prediction_accuracy_pct),
        }


class FrameResult:
    """Result of a single pipeline iteration.

    Carries everything a renderer needs without re-deriving it.
    """

    __slots__ = (
        "frame_id", "timestamp", "frame", "hands", "label",
        "filtered_position", "predicted_position", "params",
        "speed", "highlight_color", "metrics",
    )

    def __init__(self, frame_id: int = 0, timestamp: float = 0.0):
        self.frame_id = frame_id
        self.timestamp = timestamp if timestamp else time.time()
        self.frame: Optional[np.ndarray] = None
        self.hands: List[Hand] = []
        self.label = GestureLabel.NONE
        self.filtered_position: Optional[LandmarkPoint] = None
        self.predicted_position: Optional[LandmarkPoint] = None
        self.params: Optional[AdaptiveParams] = None
        self.speed = 0.0
        self.highlight_color: Tuple[int, int, int] = (0, 0, 255)
        self.metrics = SessionMetrics()

    @property
    def hand_detected(self) -> bool:
        return bool(self.hands)

    def __repr__(self):
        return f"FrameResult(#{self.frame_id}, {self.label.value}, hands={len(self.hands)})"
