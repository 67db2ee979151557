"""
Shared fixtures for the gesture trainer tests.
"""

import pytest

from gesture_trainer.core.types import Hand, LandmarkPoint


# Right-hand layout (normalized). Each finger: (x, mcp_y, pip_y, dip_y, tip_up_y, tip_down_y)
_FINGERS = {
    "index":  (0.45, 0.56, 0.48, 0.42, 0.36, 0.52),
    "middle": (0.50, 0.55, 0.46, 0.40, 0.34, 0.50),
    "ring":   (0.55, 0.56, 0.48, 0.43, 0.38, 0.52),
    "pinky":  (0.60, 0.58, 0.52, 0.48, 0.44, 0.56),
}


def create_mock_hand(
    finger_states: dict,
    handedness: str = "Right",
    confidence: float = 0.95,
    offset=(0.0, 0.0),
    tip_spread: float = 0.0,
) -> Hand:
    """
    Create a 21-landmark hand with the given fingers extended.

    Args:
        finger_states: Dict of finger -> "up" or "down" (missing = "down")
        handedness: "Left" mirrors the layout horizontally
        offset: (dx, dy) added to every landmark
        tip_spread: Moves the index and middle tips apart horizontally
    """
    def up(name):
        return finger_states.get(name, "down") == "up"

    points = [(0.5, 0.7)]  # Wrist

    # Thumb: up means the tip is further from the palm than the IP joint
    thumb_tip_x = 0.36 if up("thumb") else 0.44
    points += [(0.46, 0.66), (0.43, 0.62), (0.40, 0.58), (thumb_tip_x, 0.55)]

    for name in ("index", "middle", "ring", "pinky"):
        x, mcp_y, pip_y, dip_y, tip_up_y, tip_down_y = _FINGERS[name]
        tip_x = x
        if name == "index":
            tip_x -= tip_spread
        elif name == "middle":
            tip_x += tip_spread
        tip_y = tip_up_y if up(name) else tip_down_y
        points += [(x, mcp_y), (x, pip_y), (x, dip_y), (tip_x, tip_y)]

    dx, dy = offset
    landmarks = []
    for x, y in points:
        if handedness == "Left":
            x = 1.0 - x
        landmarks.append(LandmarkPoint(x=x + dx, y=y + dy, z=0.0))

    return Hand(landmarks=landmarks, handedness=handedness, confidence=confidence)


ALL_UP = {"thumb": "up", "index": "up", "middle": "up", "ring": "up", "pinky": "up"}
POINT = {"index": "up"}
ZOOM_POSE = {"thumb": "up", "index": "up"}


@pytest.fixture
def point_hand():
    return create_mock_hand(POINT)


@pytest.fixture
def open_hand():
    return create_mock_hand(ALL_UP)
