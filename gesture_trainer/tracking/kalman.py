"""
Per-axis Kalman-style smoothing for the tracked wrist point.

Each axis runs an independent scalar estimator with an identity motion
model. Look-ahead is left to the position predictor, which works from
separately estimated velocity and acceleration.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from gesture_trainer.core.types import LandmarkPoint

logger = logging.getLogger(__name__)


@dataclass
class FilterConfig:
    """Tuning constants shared by the three axis filters."""
    process_noise: float = 0.1       # q
    measurement_noise: float = 0.8   # r

    @classmethod
    def from_dict(cls, config: dict) -> "FilterConfig":
        """Create config from dictionary."""
        return cls(
            process_noise=config.get("process_noise", 0.1),
            measurement_noise=config.get("measurement_noise", 0.8),
        )


@dataclass
class AxisFilter:
    """Scalar estimator state for one spatial axis."""
    estimate: float = 0.0
    error_covariance: float = 1.0
    process_noise: float = 0.1
    measurement_noise: float = 0.8

    def update(self, measurement: float) -> float:
        """Fold one measurement into the estimate and return the new estimate."""
        # Predict
        x_prior = self.estimate
        p_prior = self.error_covariance + self.process_noise

        # Update
        gain = p_prior / (p_prior + self.measurement_noise)
        self.estimate = x_prior + gain * (measurement - x_prior)
        self.error_covariance = (1.0 - gain) * p_prior

        return self.estimate

    def reset(self) -> None:
        self.estimate = 0.0
        self.error_covariance = 1.0


class FilterBank:
    """Three independent axis filters smoothing a 3-D point.

    Example:
        >>> bank = FilterBank()
        >>> smoothed = bank.update(hand.wrist)
    """

    def __init__(self, config: Optional[FilterConfig] = None):
        self.config = config or FilterConfig()
        self.x = self._new_axis()
        self.y = self._new_axis()
        self.z = self._new_axis()

    def _new_axis(self) -> AxisFilter:
        return AxisFilter(
            process_noise=self.config.process_noise,
            measurement_noise=self.config.measurement_noise,
        )

    def update(self, point: LandmarkPoint) -> LandmarkPoint:
        """Smooth a measured point, returning the filtered point."""
        return LandmarkPoint(
            self.x.update(point.x),
            self.y.update(point.y),
            self.z.update(point.z),
        )

    @property
    def estimate(self) -> LandmarkPoint:
        return LandmarkPoint(self.x.estimate, self.y.estimate, self.z.estimate)

    def reset(self) -> None:
        """Return every axis to (estimate=0, covariance=1)."""
        for axis in (self.x, self.y, self.z):
            axis.reset()
        logger.debug("Filter bank reset")
