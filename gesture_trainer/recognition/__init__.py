"""Gesture recognition module."""
from .gesture_classifier import (
    GestureClassifier,
    ClassifierConfig,
    FingerStates,
    finger_states,
    classify_single,
    classify_two_hands,
    step_zoom,
)

__all__ = [
    "GestureClassifier",
    "ClassifierConfig",
    "FingerStates",
    "finger_states",
    "classify_single",
    "classify_two_hands",
    "step_zoom",
]
