"""
Gesture Trainer
================

Real-time hand gesture recognition and cursor-control training pipeline.

Modules:
    - capture: Camera frame acquisition
    - detection: MediaPipe hand landmark detection
    - tracking: Wrist smoothing, motion estimation and position prediction
    - recognition: Rule-based gesture classification (one and two hands)
    - core: Session controller, shared types and events
    - utils: Configuration, logging, performance monitoring, visualization
"""

__version__ = "1.0.0"
__author__ = "HCI Team"
