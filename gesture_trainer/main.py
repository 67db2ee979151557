"""
Gesture Trainer - Main Application
====================================

Entry point for the gesture training panel. Wires camera, detector and the
session controller together and renders the training overlay with OpenCV.
"""

import argparse
import logging
import signal
import sys
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from gesture_trainer.capture.camera import Camera, CameraConfig
from gesture_trainer.core.session import SessionController, SessionConfig
from gesture_trainer.core.types import FrameResult, SessionState
from gesture_trainer.detection.hand_detector import HandDetector, HandDetectorConfig
from gesture_trainer.recognition.gesture_classifier import GestureClassifier, ClassifierConfig
from gesture_trainer.tracking.kalman import FilterConfig
from gesture_trainer.utils.config import Config
from gesture_trainer.utils.logger import setup_logging, SessionEventLogger
from gesture_trainer.utils.visualization import Visualizer, VisualizerConfig

logger = logging.getLogger(__name__)

WINDOW_NAME = "Gesture Training"


@dataclass
class AppConfig:
    """Application configuration container."""
    camera: CameraConfig
    mediapipe: HandDetectorConfig
    filter: FilterConfig
    recognition: ClassifierConfig
    session: SessionConfig
    visualization: VisualizerConfig


def create_app_config(config: Config) -> AppConfig:
    """Create AppConfig from the loaded configuration."""
    return AppConfig(
        camera=CameraConfig.from_dict(config.camera),
        mediapipe=HandDetectorConfig.from_dict(config.mediapipe),
        filter=FilterConfig.from_dict(config.filter),
        recognition=ClassifierConfig.from_dict(config.recognition),
        session=SessionConfig.from_dict(config.session),
        visualization=VisualizerConfig.from_dict(config.visualization),
    )


class GestureTrainingApp:
    """
    Interactive training window.

    Keyboard Controls:
        space   - Start / stop training
        r       - Reset progress
        t       - Retry detector initialization
        q/ESC   - Quit
    """

    def __init__(self, config: AppConfig):
        self.config = config
        self.camera = Camera(config.camera)
        self.detector = HandDetector(config.mediapipe)
        self.controller = SessionController(
            camera=self.camera,
            detector=self.detector,
            classifier=GestureClassifier(config.recognition),
            config=config.session,
            filter_config=config.filter,
        )
        self.visualizer = Visualizer(config.visualization)
        self.notifier = SessionEventLogger(self.controller.event_bus)
        self._running = False

    def run(self) -> None:
        """Run until the user quits."""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

        self._running = True
        self.controller.load_detector()
        self.controller.start()

        try:
            while self._running:
                if self.controller.state is SessionState.ACTIVE:
                    self.controller.run(on_frame=self._on_frame)
                else:
                    self._show_idle()
        finally:
            self.controller.close()
            cv2.destroyAllWindows()
            print(self.controller.performance.get_report())
            print(self.notifier.summary())
            logger.info("Camera delivered %d frames (%d dropped, %.1fms avg read)",
                        self.camera.frames_captured, self.camera.frames_dropped, self.camera.avg_read_time_ms)

    def _on_frame(self, result: FrameResult) -> None:
        display = result.frame.copy() if result.frame is not None else self._blank()
        self.visualizer.render(display, result, self.controller.progress, self.controller.history)
        cv2.imshow(WINDOW_NAME, display)
        self._handle_key(cv2.waitKey(1) & 0xFF)
        if not self._running:
            self.controller.stop()

    def _show_idle(self) -> None:
        display = self._blank()
        status = "Camera Inactive"
        if self.controller.state is SessionState.LOADING:
            status = "Detector Unavailable"
        self.visualizer.draw_progress(display, self.controller.progress)
        self.visualizer.draw_status(display, status)
        cv2.imshow(WINDOW_NAME, display)
        self._handle_key(cv2.waitKey(30) & 0xFF)

    def _blank(self) -> np.ndarray:
        return np.zeros((self.config.camera.height, self.config.camera.width, 3), dtype=np.uint8)

    def _handle_key(self, key: int) -> None:
        if key in (ord('q'), 27):
            self._running = False
        elif key == ord(' '):
            if self.controller.state is SessionState.ACTIVE:
                self.controller.stop()
            else:
                self.controller.start()
        elif key == ord('r'):
            self.controller.reset()
        elif key == ord('t'):
            self.controller.retry()

    def _signal_handler(self, signum, frame) -> None:
        logger.info("Received signal %s, shutting down...", signum)
        self._running = False


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Hand gesture training with adaptive wrist tracking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Keyboard Controls:
  space     - Start / stop training
  r         - Reset progress
  t         - Retry detector initialization
  q/ESC     - Quit
        """
    )
    parser.add_argument("--config", "-c", default=None, help="Path to configuration file")
    parser.add_argument("--camera", type=int, default=None, help="Camera device id")
    parser.add_argument("--log-file", default=None, help="Write a rotating debug log here")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    config = Config().load(args.config)
    level = "DEBUG" if args.debug else config.get("logging.level", "INFO")
    setup_logging(level=level, log_file=args.log_file or config.get("logging.file"))

    app_config = create_app_config(config)
    if args.camera is not None:
        app_config.camera.device_id = args.camera

    GestureTrainingApp(app_config).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
