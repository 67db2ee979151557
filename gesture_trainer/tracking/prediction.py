"""
Speed-adaptive look-ahead and kinematic position prediction.

The predicted point drives the "ghost" indicator only; recognition always
works on the current frame. PredictionTracker scores earlier predictions
against the filtered positions that actually arrived.
"""

import logging
from collections import deque
from typing import Optional, Sequence

import numpy as np

from gesture_trainer.core.types import AdaptiveParams, LandmarkPoint

logger = logging.getLogger(__name__)

FAST_SPEED = 500.0
SLOW_SPEED = 50.0

FAST_PARAMS = AdaptiveParams(smoothing_factor=0.3, horizon_frames=3)
SLOW_PARAMS = AdaptiveParams(smoothing_factor=0.8, horizon_frames=1)
MEDIUM_PARAMS = AdaptiveParams(smoothing_factor=0.6, horizon_frames=2)


def adaptive_params(speed: float) -> AdaptiveParams:
    """Map instantaneous speed (units/sec) to smoothing and horizon."""
    if speed > FAST_SPEED:
        return FAST_PARAMS
    if speed < SLOW_SPEED:
        return SLOW_PARAMS
    return MEDIUM_PARAMS


def predict_position(
    position: Sequence[float],
    velocity: Sequence[float],
    acceleration: Sequence[float],
    horizon: int,
) -> LandmarkPoint:
    """Constant-acceleration projection: p + v*h + a*h^2/2 per axis."""
    p = np.asarray(position, dtype=float)
    v = np.asarray(velocity, dtype=float)
    a = np.asarray(acceleration, dtype=float)
    predicted = p + v * horizon + a * (horizon * horizon) / 2.0
    return LandmarkPoint(float(predicted[0]), float(predicted[1]), float(predicted[2]))


class PredictionTracker:
    """Rolling error of past predictions against the positions that followed.

    A prediction made on frame N with horizon h is scored when frame N + h
    delivers its filtered position.

    Args:
        window_size: Number of scored predictions kept for the averages
        tolerance: Error (normalized units) under which a prediction counts
            as accurate
    """

    def __init__(self, window_size: int = 60, tolerance: float = 0.02):
        self.tolerance = tolerance
        self._pending = deque()  # (target_frame, predicted ndarray)
        self._errors = deque(maxlen=window_size)

    def record(self, frame_index: int, predicted: LandmarkPoint, horizon: int) -> None:
        self._pending.append((frame_index + horizon, np.array(predicted, dtype=float)))

    def observe(self, frame_index: int, actual: LandmarkPoint) -> Optional[float]:
        """Score every prediction targeting this frame; returns the last error."""
        actual_arr = np.array(actual, dtype=float)
        error = None
        remaining = deque()
        while self._pending:
            target, predicted = self._pending.popleft()
            if target == frame_index:
                error = float(np.linalg.norm(predicted - actual_arr))
                self._errors.append(error)
            elif target > frame_index:
                remaining.append((target, predicted))
        self._pending = remaining
        return error

    def discard_pending(self) -> None:
        """Drop predictions that can no longer be scored (hand lost)."""
        self._pending.clear()

    @property
    def sample_count(self) -> int:
        return len(self._errors)

    @property
    def mean_error(self) -> float:
        if not self._errors:
            return 0.0
        return sum(self._errors) / len(self._errors)

    @property
    def accuracy_pct(self) -> float:
        if not self._errors:
            return 0.0
        hits = sum(1 for e in self._errors if e <= self.tolerance)
        return 100.0 * hits / len(self._errors)

    def reset(self) -> None:
        self._pending.clear()
        self._errors.clear()
