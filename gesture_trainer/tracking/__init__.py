"""Wrist smoothing, motion estimation and position prediction."""
from .kalman import AxisFilter, FilterBank, FilterConfig
from .motion import MotionEstimator, MotionState
from .prediction import adaptive_params, predict_position, PredictionTracker

__all__ = [
    "AxisFilter",
    "FilterBank",
    "FilterConfig",
    "MotionEstimator",
    "MotionState",
    "adaptive_params",
    "predict_position",
    "PredictionTracker",
]
