"""
Velocity and acceleration from the filtered wrist stream.

Finite differences between consecutive filtered positions, scaled by a
nominal 60 Hz frame rate. Units are normalized coordinates per second.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from gesture_trainer.core.types import LandmarkPoint

logger = logging.getLogger(__name__)

FRAME_RATE = 60.0


def _zeros() -> np.ndarray:
    return np.zeros(3, dtype=float)


@dataclass
class MotionState:
    """Last filtered position plus derived velocity and acceleration."""
    position: Optional[np.ndarray] = None
    velocity: np.ndarray = field(default_factory=_zeros)
    acceleration: np.ndarray = field(default_factory=_zeros)
    velocity_samples: int = 0

    @property
    def speed(self) -> float:
        return float(np.linalg.norm(self.velocity))

    @property
    def has_acceleration(self) -> bool:
        """Acceleration is only meaningful after two velocity samples."""
        return self.velocity_samples >= 2


class MotionEstimator:
    """Tracks motion of one filtered point across frames."""

    def __init__(self, frame_rate: float = FRAME_RATE):
        self.frame_rate = frame_rate
        self.state = MotionState()

    def update(self, position: LandmarkPoint) -> MotionState:
        """Advance the estimate with the current filtered position.

        Without a previous position (first frame, or first frame after a gap)
        velocity and acceleration are left as they were. The baseline is
        always moved to the current position.
        """
        current = np.array(position, dtype=float)
        previous = self.state.position

        if previous is not None:
            new_velocity = (current - previous) * self.frame_rate
            self.state.acceleration = (new_velocity - self.state.velocity) * self.frame_rate
            self.state.velocity = new_velocity
            self.state.velocity_samples += 1

        self.state.position = current
        return self.state

    def mark_gap(self) -> None:
        """Forget the baseline so no delta is taken across a detection gap."""
        if self.state.position is not None:
            logger.debug("Hand lost, motion baseline cleared")
        self.state.position = None

    @property
    def speed(self) -> float:
        return self.state.speed

    @property
    def velocity(self) -> np.ndarray:
        return self.state.velocity

    @property
    def acceleration(self) -> np.ndarray:
        return self.state.acceleration

    def reset(self) -> None:
        self.state = MotionState()
