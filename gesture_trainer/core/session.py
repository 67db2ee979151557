"""
Session controller for the gesture training pipeline.

Owns the camera and detector for the lifetime of a session and runs the
per-frame cycle on a single cooperative loop:

    camera -> detector -> validate_hands -> FilterBank (wrist)
    -> MotionEstimator -> adaptive_params -> predict_position
    -> GestureClassifier -> metrics / history / progress -> events

Lifecycle:
    IDLE -> LOADING -> READY        (load_detector, one-way)
    READY/STOPPED -> ACTIVE         (start)
    ACTIVE -> STOPPED               (stop)
    reset() clears estimator state and progress without changing the state.

All estimator state is touched only from tick(), so no locking is needed.
"""

import time
import logging
from collections import deque
from dataclasses import dataclass
from typing import Optional, Callable, List, Sequence, Any, Tuple

from gesture_trainer.core.types import (
    Hand, GestureLabel, TwoHandGestureState, SessionState, SessionMetrics,
    FrameResult, validate_hands,
)
from gesture_trainer.core.events import EventBus, Events
from gesture_trainer.core.errors import CameraError, DetectorError, ResourceAcquisitionError
from gesture_trainer.tracking.kalman import FilterBank, FilterConfig
from gesture_trainer.tracking.motion import MotionEstimator, FRAME_RATE
from gesture_trainer.tracking.prediction import (
    adaptive_params, predict_position, PredictionTracker,
)
from gesture_trainer.recognition.gesture_classifier import GestureClassifier
from gesture_trainer.utils.performance import PerformanceMonitor

logger = logging.getLogger(__name__)

# Confidence glow colours (BGR)
HIGH_CONFIDENCE_COLOR = (0, 255, 0)
MEDIUM_CONFIDENCE_COLOR = (0, 255, 255)
LOW_CONFIDENCE_COLOR = (0, 0, 255)

MAX_PROGRESS = 100


def highlight_color(confidence: float) -> Tuple[int, int, int]:
    """Border colour for the current detection confidence."""
    if confidence > 0.9:
        return HIGH_CONFIDENCE_COLOR
    if confidence > 0.7:
        return MEDIUM_CONFIDENCE_COLOR
    return LOW_CONFIDENCE_COLOR


def _with_reason(message: str, adapter) -> str:
    reason = getattr(adapter, "failure_reason", None)
    return f"{message} ({reason})" if reason else message


@dataclass
class SessionConfig:
    """Session controller configuration."""
    target_fps: int = 60
    fps_window: int = 60
    history_size: int = 10
    progress_step: int = 2
    prediction_tolerance: float = 0.02

    @classmethod
    def from_dict(cls, config: dict) -> "SessionConfig":
        """Create config from dictionary."""
        return cls(
            target_fps=config.get("target_fps", 60),
            fps_window=config.get("fps_window", 60),
            history_size=config.get("history_size", 10),
            progress_step=config.get("progress_step", 2),
            prediction_tolerance=config.get("prediction_tolerance", 0.02),
        )


class SessionController:
    """Runs one gesture training session.

    Args:
        camera: Object with start() -> bool, stop(), read() -> Optional[Frame]
        detector: Object with start() -> bool, stop(), detect(image, timestamp_ms)
        classifier: GestureClassifier (default configuration if omitted)
        config: SessionConfig
        filter_config: Tuning for the wrist filter bank
        event_bus: Bus for lifecycle and recognition events
        clock: Monotonic clock in seconds, injectable for tests
    """

    def __init__(
        self,
        camera,
        detector,
        classifier: Optional[GestureClassifier] = None,
        config: Optional[SessionConfig] = None,
        filter_config: Optional[FilterConfig] = None,
        event_bus: Optional[EventBus] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self._camera = camera
        self._detector = detector
        self._classifier = classifier or GestureClassifier()
        self.config = config or SessionConfig()
        self._bus = event_bus or EventBus()
        self._clock = clock

        self._state = SessionState.IDLE
        self._last_error: Optional[ResourceAcquisitionError] = None

        # Estimator state, owned exclusively by this controller
        self._filters = FilterBank(filter_config)
        self._motion = MotionEstimator(FRAME_RATE)
        self._predictions = PredictionTracker(
            window_size=self.config.fps_window,
            tolerance=self.config.prediction_tolerance,
        )
        self._two_hand_state = TwoHandGestureState()
        self._perf = PerformanceMonitor(window_size=self.config.fps_window)

        # Session outputs
        self._metrics = SessionMetrics()
        self._history = deque(maxlen=self.config.history_size)
        self._progress = 0

        # Loop bookkeeping
        self._frame_index = 0
        self._tick_scheduled = False
        self._last_frame_number: Optional[int] = None
        self._last_detect_ms = -1
        self._detection_failures = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        previous, self._state = self._state, state
        logger.info("Session state: %s -> %s", previous.value, state.value)
        self._bus.emit(Events.STATE_CHANGED, previous=previous, state=state)

    def _fail(self, error: ResourceAcquisitionError, event: str) -> bool:
        self._last_error = error
        logger.error("%s", error)
        self._bus.emit(event, error=error, message=str(error))
        return False

    def load_detector(self) -> bool:
        """Initialize the detector: IDLE -> LOADING -> READY.

        On failure the controller stays in LOADING until retry().
        """
        if self._state not in (SessionState.IDLE, SessionState.LOADING):
            logger.debug("Detector already loaded (state=%s)", self._state.value)
            return True

        self._set_state(SessionState.LOADING)
        try:
            ok = self._detector.start()
        except Exception as e:
            return self._fail(DetectorError(f"Detector initialization failed: {e}", e),
                              Events.DETECTOR_ERROR)
        if not ok:
            return self._fail(DetectorError(_with_reason("Detector initialization failed", self._detector)),
                              Events.DETECTOR_ERROR)

        self._last_error = None
        self._set_state(SessionState.READY)
        self._bus.emit(Events.DETECTOR_READY)
        return True

    def retry(self) -> bool:
        """Retry detector initialization after a failure."""
        if self._state is not SessionState.LOADING:
            logger.warning("Nothing to retry in state %s", self._state.value)
            return False
        logger.info("Retrying detector initialization")
        return self.load_detector()

    def start(self) -> bool:
        """Acquire the camera and enter ACTIVE.

        From IDLE the detector is loaded first. A camera failure leaves the
        state unchanged.
        """
        if self._state is SessionState.ACTIVE:
            return True

        if self._state in (SessionState.IDLE, SessionState.LOADING):
            if not self.load_detector():
                return False

        try:
            ok = self._camera.start()
        except Exception as e:
            return self._fail(CameraError(f"Failed to access camera: {e}", e), Events.CAMERA_ERROR)
        if not ok:
            return self._fail(CameraError(_with_reason("Failed to access camera. Check permissions and device.",
                                                       self._camera)),
                              Events.CAMERA_ERROR)

        self._last_error = None
        self._clear_estimators()
        self._last_frame_number = None
        self._tick_scheduled = True
        self._set_state(SessionState.ACTIVE)
        self._bus.emit(Events.SESSION_STARTED)
        return True

    def stop(self) -> None:
        """Cancel the pending tick, then release the camera."""
        if self._state is not SessionState.ACTIVE:
            return

        self._tick_scheduled = False
        self._set_state(SessionState.STOPPED)
        self._camera.stop()
        self._bus.emit(Events.SESSION_STOPPED, frames=self._perf.total_frames)

    def reset(self) -> bool:
        """Clear estimator state, metrics, history and progress.

        Available in READY, ACTIVE and STOPPED. Does not touch the lifecycle
        state, so it is safe between ticks of a running loop.
        """
        if self._state not in (SessionState.READY, SessionState.ACTIVE, SessionState.STOPPED):
            logger.warning("Reset ignored in state %s", self._state.value)
            return False

        self._clear_estimators()
        self._metrics = SessionMetrics()
        self._history.clear()
        self._progress = 0
        logger.info("Training progress reset")
        self._bus.emit(Events.SESSION_RESET)
        return True

    def close(self) -> None:
        """Stop the session and release the detector."""
        self.stop()
        if self._state is not SessionState.IDLE:
            self._detector.stop()

    def _clear_estimators(self) -> None:
        self._filters.reset()
        self._motion.reset()
        self._predictions.reset()
        self._two_hand_state = TwoHandGestureState()
        self._perf.reset()
        self._frame_index = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Frame loop
    # ------------------------------------------------------------------

    def tick(self) -> Optional[FrameResult]:
        """Run one frame of the pipeline.

        Returns None when not ACTIVE or when no new video frame is available
        yet (the frame is skipped, nothing is updated).
        """
        if self._state is not SessionState.ACTIVE or not self._tick_scheduled:
            return None

        start = self._clock()

        with self._perf.measure("capture"):
            frame = self._camera.read()

        # Not decodable yet, or the camera has not delivered a new frame
        frame_number = getattr(frame, "frame_number", None)
        if frame is None or (frame_number is not None and frame_number == self._last_frame_number):
            self._perf.record_skip()
            return None
        self._last_frame_number = frame_number

        timestamp_ms = max(int(start * 1000), self._last_detect_ms + 1)
        self._last_detect_ms = timestamp_ms

        with self._perf.measure("detection"):
            try:
                raw_hands = self._detector.detect(frame.rgb, timestamp_ms)
            except Exception as e:
                self._detection_failures += 1
                log = logger.error if self._detection_failures == 1 else logger.debug
                log("Hand detection failed on frame %s: %s", frame_number, e)
                raw_hands = []

        result = self.process_hands(raw_hands, start=start)
        result.frame = getattr(frame, "image", None)
        return result

    def process_hands(self, raw_hands: Optional[Sequence[Any]],
                      start: Optional[float] = None) -> FrameResult:
        """Run filtering, estimation, prediction and classification on one
        frame of detector output."""
        if start is None:
            start = self._clock()

        self._frame_index += 1
        result = FrameResult(frame_id=self._frame_index)

        hands: List[Hand] = validate_hands(raw_hands)
        result.hands = hands

        with self._perf.measure("tracking"):
            if hands:
                self._track(hands[0], result)
            else:
                self._motion.mark_gap()
                self._predictions.discard_pending()

        with self._perf.measure("classification"):
            label, self._two_hand_state = self._classifier.classify(hands, self._two_hand_state)
        result.label = label

        confidence = hands[0].confidence if hands else 0.0
        result.highlight_color = highlight_color(confidence)

        if label.is_recognized:
            self._history.appendleft(label)
            self._progress = min(self._progress + self.config.progress_step, MAX_PROGRESS)
            self._bus.emit(Events.GESTURE_RECOGNIZED, label=label, progress=self._progress)

        end = self._clock()
        latency_ms = (end - start) * 1000
        self._perf.record_frame(end, latency_ms=latency_ms)

        self._metrics = SessionMetrics(
            latency_ms=latency_ms,
            confidence_pct=confidence * 100,
            fps=self._perf.fps,
            gesture_recognized=label,
            prediction_error=self._predictions.mean_error,
            prediction_accuracy_pct=self._predictions.accuracy_pct,
        )
        result.metrics = self._metrics
        return result

    def _track(self, hand: Hand, result: FrameResult) -> None:
        filtered = self._filters.update(hand.wrist)
        self._predictions.observe(self._frame_index, filtered)

        motion = self._motion.update(filtered)
        params = adaptive_params(motion.speed)
        predicted = predict_position(filtered, motion.velocity, motion.acceleration,
                                     params.horizon_frames)
        self._predictions.record(self._frame_index, predicted, params.horizon_frames)

        result.filtered_position = filtered
        result.predicted_position = predicted
        result.params = params
        result.speed = motion.speed

    def run(self, on_frame: Optional[Callable[[FrameResult], None]] = None,
            max_frames: Optional[int] = None,
            sleep: Callable[[float], None] = time.sleep) -> int:
        """Cooperative frame loop, paced to the target frame rate.

        Processes one tick per interval until the session leaves ACTIVE (for
        example when on_frame calls stop()) or max_frames frames have been
        processed. Returns the number of processed frames.
        """
        interval = 1.0 / self.config.target_fps if self.config.target_fps > 0 else 0.0
        processed = 0

        while self._state is SessionState.ACTIVE and self._tick_scheduled:
            tick_start = self._clock()
            result = self.tick()
            if result is not None:
                processed += 1
                if on_frame is not None:
                    on_frame(result)
                if max_frames is not None and processed >= max_frames:
                    break

            remaining = interval - (self._clock() - tick_start)
            if remaining > 0:
                sleep(remaining)

        return processed

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def last_error(self) -> Optional[ResourceAcquisitionError]:
        return self._last_error

    @property
    def detection_failures(self) -> int:
        """Frames where the detector raised and were treated as having no hands."""
        return self._detection_failures

    @property
    def metrics(self) -> SessionMetrics:
        return self._metrics

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def history(self) -> List[GestureLabel]:
        """Recent recognized gestures, newest first."""
        return list(self._history)

    @property
    def two_hand_state(self) -> TwoHandGestureState:
        return self._two_hand_state

    @property
    def motion(self):
        return self._motion.state

    @property
    def filters(self) -> FilterBank:
        return self._filters

    @property
    def performance(self) -> PerformanceMonitor:
        return self._perf

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    def build_state(self) -> dict:
        """Build state dict for dashboard rendering."""
        return {
            "state": self._state.value,
            "progress": self._progress,
            "history": [g.value for g in self._history],
            "metrics": self._metrics.to_dict(),
            "error": str(self._last_error) if self._last_error else None,
        }
