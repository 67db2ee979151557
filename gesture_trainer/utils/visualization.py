"""
Visualization Module
=====================

Training overlay: hand skeletons, predicted "ghost" point, confidence glow,
metrics, current gesture, history and progress bar.
"""

import cv2
import numpy as np
from typing import Optional, Tuple, List
from dataclasses import dataclass

from gesture_trainer.core.types import Hand, FrameResult, GestureLabel, LandmarkPoint


@dataclass
class VisualizerConfig:
    """Visualization settings."""
    show_landmarks: bool = True
    show_connections: bool = True
    show_prediction: bool = True
    show_metrics: bool = True
    show_history: bool = True

    # Colors (BGR format)
    landmark_color: Tuple[int, int, int] = (0, 255, 0)       # Green
    connection_color: Tuple[int, int, int] = (255, 255, 255)  # White
    ghost_color: Tuple[int, int, int] = (0, 255, 255)        # Yellow
    text_color: Tuple[int, int, int] = (0, 255, 255)         # Yellow
    good_color: Tuple[int, int, int] = (0, 255, 0)           # Green
    warning_color: Tuple[int, int, int] = (0, 0, 255)        # Red

    # Font settings
    font_scale: float = 0.6
    font_thickness: int = 2

    @classmethod
    def from_dict(cls, config: dict) -> "VisualizerConfig":
        """Create config from dictionary."""
        colors = config.get("colors", {})
        return cls(
            show_landmarks=config.get("show_landmarks", True),
            show_connections=config.get("show_connections", True),
            show_prediction=config.get("show_prediction", True),
            show_metrics=config.get("show_metrics", True),
            show_history=config.get("show_history", True),
            landmark_color=tuple(colors.get("landmarks", [0, 255, 0])),
            connection_color=tuple(colors.get("connections", [255, 255, 255])),
            ghost_color=tuple(colors.get("ghost", [0, 255, 255])),
            text_color=tuple(colors.get("text", [0, 255, 255])),
            font_scale=config.get("font_scale", 0.6),
            font_thickness=config.get("font_thickness", 2),
        )


class Visualizer:
    """
    Draws one FrameResult onto a BGR image.

    Example:
        >>> viz = Visualizer()
        >>> display = viz.render(frame.image.copy(), result, progress, history)
        >>> cv2.imshow("Gesture Training", display)
    """

    # Hand connection pairs for drawing skeleton
    HAND_CONNECTIONS = [
        (0, 1), (1, 2), (2, 3), (3, 4),         # Thumb
        (0, 5), (5, 6), (6, 7), (7, 8),         # Index
        (5, 9), (9, 10), (10, 11), (11, 12),    # Middle
        (9, 13), (13, 14), (14, 15), (15, 16),  # Ring
        (13, 17), (17, 18), (18, 19), (19, 20),  # Pinky
        (0, 17),                                 # Palm base
    ]

    FINGERTIPS = (4, 8, 12, 16, 20)

    def __init__(self, config: Optional[VisualizerConfig] = None):
        self.config = config or VisualizerConfig()
        self._font = cv2.FONT_HERSHEY_SIMPLEX

    def render(
        self,
        image: np.ndarray,
        result: FrameResult,
        progress: int = 0,
        history: Optional[List[GestureLabel]] = None,
        status: str = "",
    ) -> np.ndarray:
        """Draw every overlay for one processed frame."""
        self.draw_hands(image, result.hands)
        if self.config.show_prediction and result.predicted_position is not None:
            self.draw_ghost(image, result.predicted_position)
        if result.hands:
            self.draw_glow(image, result.highlight_color)
        if self.config.show_metrics:
            self.draw_metrics(image, result)
        self.draw_gesture(image, result.label)
        if self.config.show_history and history:
            self.draw_history(image, history)
        self.draw_progress(image, progress)
        if status:
            self.draw_status(image, status)
        return image

    def draw_hands(self, image: np.ndarray, hands: List[Hand]) -> np.ndarray:
        for hand in hands:
            self.draw_hand(image, hand)
        return image

    def draw_hand(self, image: np.ndarray, hand: Hand) -> np.ndarray:
        """Draw single hand landmarks and connections."""
        height, width = image.shape[:2]

        if self.config.show_connections:
            for start_idx, end_idx in self.HAND_CONNECTIONS:
                start = hand.landmarks[start_idx].to_pixel(width, height)
                end = hand.landmarks[end_idx].to_pixel(width, height)
                cv2.line(image, start, end, self.config.connection_color, 2)

        if self.config.show_landmarks:
            for i, lm in enumerate(hand.landmarks):
                x, y = lm.to_pixel(width, height)
                if i in self.FINGERTIPS:
                    cv2.circle(image, (x, y), 7, (0, 0, 255), -1)
                else:
                    cv2.circle(image, (x, y), 5, self.config.landmark_color, -1)

        return image

    def draw_ghost(self, image: np.ndarray, point: LandmarkPoint, radius: int = 10) -> np.ndarray:
        """Translucent circle where the wrist is predicted to be."""
        height, width = image.shape[:2]
        center = point.to_pixel(width, height)
        overlay = image.copy()
        cv2.circle(overlay, center, radius, self.config.ghost_color, -1)
        cv2.addWeighted(overlay, 0.3, image, 0.7, 0, dst=image)
        cv2.circle(image, center, radius, self.config.ghost_color, 1)
        return image

    def draw_glow(self, image: np.ndarray, color: Tuple[int, int, int], thickness: int = 6) -> np.ndarray:
        """Confidence-coloured frame border."""
        height, width = image.shape[:2]
        cv2.rectangle(image, (0, 0), (width - 1, height - 1), color, thickness)
        return image

    def draw_metrics(self, image: np.ndarray, result: FrameResult) -> np.ndarray:
        x, y = 20, 30
        line_height = 25
        metrics = result.metrics

        lines = [
            (f"Latency: {metrics.latency_ms:.1f}ms", metrics.latency_ms < 30),
            (f"FPS: {metrics.fps:.0f}", metrics.fps > 55),
            (f"Confidence: {metrics.confidence_pct:.0f}%", metrics.confidence_pct > 90),
            (f"Prediction: {metrics.prediction_accuracy_pct:.0f}%", metrics.prediction_accuracy_pct > 85),
        ]
        for text, good in lines:
            color = self.config.good_color if good else self.config.warning_color
            cv2.putText(image, text, (x, y), self._font, self.config.font_scale,
                        color, self.config.font_thickness)
            y += line_height
        return image

    def draw_gesture(self, image: np.ndarray, label: GestureLabel) -> np.ndarray:
        height, width = image.shape[:2]
        color = self.config.good_color if label.is_recognized else self.config.text_color
        cv2.putText(image, f"Gesture: {label.value}", (20, height - 50),
                    self._font, 0.9, color, self.config.font_thickness)
        return image

    def draw_history(self, image: np.ndarray, history: List[GestureLabel]) -> np.ndarray:
        height, width = image.shape[:2]
        x, y = width - 170, 30
        for label in history:
            cv2.putText(image, label.value, (x, y), self._font, 0.5, self.config.text_color, 1)
            y += 20
        return image

    def draw_progress(self, image: np.ndarray, progress: int) -> np.ndarray:
        """Training progress bar along the bottom edge."""
        height, width = image.shape[:2]
        margin, bar_height = 20, 12
        top = height - margin - bar_height
        right = width - margin
        cv2.rectangle(image, (margin, top), (right, top + bar_height), (255, 255, 255), 1)
        filled = margin + int((right - margin) * max(0, min(progress, 100)) / 100)
        if filled > margin:
            cv2.rectangle(image, (margin, top), (filled, top + bar_height), self.config.good_color, -1)
        return image

    def draw_status(self, image: np.ndarray, status: str) -> np.ndarray:
        """Large centered status text (e.g. "Camera Inactive")."""
        height, width = image.shape[:2]
        font_scale, thickness = 1.2, 3
        text_size = cv2.getTextSize(status, self._font, font_scale, thickness)[0]
        x = (width - text_size[0]) // 2
        y = (height + text_size[1]) // 2
        cv2.putText(image, status, (x + 2, y + 2), self._font, font_scale, (0, 0, 0), thickness + 2)
        cv2.putText(image, status, (x, y), self._font, font_scale, (255, 255, 255), thickness)
        return image
