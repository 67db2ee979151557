"""
Gesture Classifier
===================

Rule-based gesture recognition from per-frame landmark geometry.
Single-hand poses are matched in a fixed priority order; two visible hands
switch to two-hand gestures (grab and zoom) whose continuation state is
carried between frames as a TwoHandGestureState value.
"""

import math
import logging
from dataclasses import dataclass, replace
from typing import Optional, List, Sequence, Tuple, NamedTuple

from gesture_trainer.core.types import (
    Hand, LandmarkIndex, GestureLabel, TwoHandGestureState, NUM_LANDMARKS,
)

logger = logging.getLogger(__name__)


@dataclass
class ClassifierConfig:
    """Gesture classifier configuration."""
    # Pixel-space thresholds are measured at this reference resolution
    reference_width: int = 640
    reference_height: int = 480
    # Index/middle tip distance under which two raised fingers are a pinch
    pinch_threshold_px: float = 40.0
    # Minimum change in two-hand index-tip distance to report a zoom direction
    zoom_threshold_px: float = 10.0
    debug: bool = False

    @classmethod
    def from_dict(cls, config: dict) -> "ClassifierConfig":
        """Create config from dictionary."""
        return cls(
            reference_width=config.get("reference_width", 640),
            reference_height=config.get("reference_height", 480),
            pinch_threshold_px=config.get("pinch_threshold_px", 40.0),
            zoom_threshold_px=config.get("zoom_threshold_px", 10.0),
            debug=config.get("debug", False),
        )


class FingerStates(NamedTuple):
    """Extension booleans for one hand."""
    thumb: bool
    index: bool
    middle: bool
    ring: bool
    pinky: bool

    @property
    def palm_open(self) -> bool:
        return all(self)

    @property
    def zoom_pose(self) -> bool:
        return self.thumb and self.index and not (self.middle or self.ring or self.pinky)


def finger_states(hand: Hand) -> FingerStates:
    """Evaluate which fingers are extended.

    The thumb compares tip x against the IP joint, mirrored for left hands.
    The other fingers are up when the tip sits above (smaller y than) the PIP
    joint, since image y grows downward.
    """
    lm = hand.landmarks
    thumb_tip = lm[LandmarkIndex.THUMB_TIP]
    thumb_ip = lm[LandmarkIndex.THUMB_IP]

    if hand.handedness == "Left":
        thumb = thumb_tip.x > thumb_ip.x
    else:
        thumb = thumb_tip.x < thumb_ip.x

    return FingerStates(
        thumb=thumb,
        index=lm[LandmarkIndex.INDEX_TIP].y < lm[LandmarkIndex.INDEX_PIP].y,
        middle=lm[LandmarkIndex.MIDDLE_TIP].y < lm[LandmarkIndex.MIDDLE_PIP].y,
        ring=lm[LandmarkIndex.RING_TIP].y < lm[LandmarkIndex.RING_PIP].y,
        pinky=lm[LandmarkIndex.PINKY_TIP].y < lm[LandmarkIndex.PINKY_PIP].y,
    )


def pixel_distance(a, b, width: int, height: int) -> float:
    """Euclidean distance between two normalized points in pixel space."""
    return math.hypot((a.x - b.x) * width, (a.y - b.y) * height)


def _usable(hand: Optional[Hand]) -> bool:
    return hand is not None and len(hand.landmarks) >= NUM_LANDMARKS


def classify_single(hand: Hand, config: ClassifierConfig) -> GestureLabel:
    """Classify one hand. First match wins."""
    if not _usable(hand):
        return GestureLabel.NONE

    fingers = finger_states(hand)

    if fingers.palm_open:
        return GestureLabel.OPEN_PALM

    if fingers.zoom_pose:
        return GestureLabel.ZOOM

    if fingers.index and fingers.middle and not fingers.ring and not fingers.pinky:
        dist = pixel_distance(
            hand.get(LandmarkIndex.INDEX_TIP), hand.get(LandmarkIndex.MIDDLE_TIP),
            config.reference_width, config.reference_height,
        )
        if dist < config.pinch_threshold_px:
            return GestureLabel.CLICK
        return GestureLabel.PEACE

    if fingers.index and not fingers.middle and not fingers.ring and not fingers.pinky:
        return GestureLabel.POINT

    if fingers.thumb and not (fingers.index or fingers.middle or fingers.ring or fingers.pinky):
        return GestureLabel.THUMBS_UP

    return GestureLabel.UNKNOWN


def step_zoom(
    state: TwoHandGestureState,
    distance: float,
    threshold: float,
) -> Tuple[GestureLabel, TwoHandGestureState]:
    """Advance the zoom hysteresis with this frame's index-tip distance.

    The first qualifying frame yields the neutral zoom label. After that,
    changes larger than the threshold report a direction and smaller ones
    repeat the previous label. The stored distance always moves to the
    current value.
    """
    previous = state.zoom_distance
    if previous is None:
        label = GestureLabel.ZOOM
    else:
        delta = distance - previous
        if abs(delta) > threshold:
            label = GestureLabel.ZOOM_IN if delta > 0 else GestureLabel.ZOOM_OUT
        else:
            label = state.zoom_label or GestureLabel.ZOOM
    return label, replace(state, grab_mode=False, zoom_distance=distance, zoom_label=label)


def classify_two_hands(
    first: Hand,
    second: Hand,
    state: TwoHandGestureState,
    config: ClassifierConfig,
) -> Tuple[GestureLabel, TwoHandGestureState]:
    """Classify a two-hand frame, returning the label and the next state."""
    a = finger_states(first)
    b = finger_states(second)

    if a.palm_open and b.palm_open:
        return GestureLabel.GRAB, TwoHandGestureState(grab_mode=True, zoom_distance=None)

    if a.zoom_pose and b.zoom_pose:
        distance = pixel_distance(
            first.get(LandmarkIndex.INDEX_TIP), second.get(LandmarkIndex.INDEX_TIP),
            config.reference_width, config.reference_height,
        )
        return step_zoom(state, distance, config.zoom_threshold_px)

    return GestureLabel.UNKNOWN, TwoHandGestureState()


class GestureClassifier:
    """
    Rule-based gesture classifier over one or two hands.

    The classifier itself is stateless; the caller owns the
    TwoHandGestureState and passes it back on the next frame.

    Example:
        >>> classifier = GestureClassifier()
        >>> state = TwoHandGestureState()
        >>> label, state = classifier.classify(hands, state)
    """

    def __init__(self, config: Optional[ClassifierConfig] = None):
        self.config = config or ClassifierConfig()

    def classify(
        self,
        hands: Sequence[Hand],
        state: Optional[TwoHandGestureState] = None,
    ) -> Tuple[GestureLabel, TwoHandGestureState]:
        """Classify the hands visible in one frame.

        Malformed hands count as absent. Beyond two hands, only the first two
        are used. Any frame that is not a two-hand frame clears the two-hand
        state.
        """
        state = state or TwoHandGestureState()
        usable: List[Hand] = [h for h in (hands or []) if _usable(h)][:2]

        if len(usable) == 2:
            label, state = classify_two_hands(usable[0], usable[1], state, self.config)
        elif len(usable) == 1:
            label, state = classify_single(usable[0], self.config), TwoHandGestureState()
        else:
            label, state = GestureLabel.NONE, TwoHandGestureState()

        if self.config.debug:
            logger.debug("Classified %d hand(s) as %s (state=%s)", len(usable), label.value, state)

        return label, state
