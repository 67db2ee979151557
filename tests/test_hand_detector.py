"""
Tests for the MediaPipe hand detector wrapper.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

pytest.importorskip("mediapipe")

from gesture_trainer.detection.hand_detector import (  # noqa: E402
    HandDetector, HandDetectorConfig, convert_result, download_model,
)


def mock_result(hands):
    """Build an object shaped like a HandLandmarkerResult."""
    return SimpleNamespace(
        hand_landmarks=[
            [SimpleNamespace(x=0.5, y=0.5, z=0.0) for _ in range(count)] for count, _, _ in hands
        ],
        handedness=[
            [SimpleNamespace(category_name=name, score=score)] for _, name, score in hands
        ],
    )


class TestConvertResult:
    """Test suite for converting landmarker output."""

    def test_two_hands(self):
        hands = convert_result(mock_result([(21, "Left", 0.9), (21, "Right", 0.8)]))

        assert [h.handedness for h in hands] == ["Left", "Right"]
        assert hands[0].confidence == pytest.approx(0.9)
        assert len(hands[1].landmarks) == 21

    def test_incomplete_hand_dropped(self):
        hands = convert_result(mock_result([(12, "Left", 0.9), (21, "Right", 0.8)]))
        assert [h.handedness for h in hands] == ["Right"]

    def test_missing_handedness(self):
        result = mock_result([(21, "Left", 0.9)])
        result.handedness = []

        hands = convert_result(result)
        assert hands[0].handedness == "Right"
        assert hands[0].confidence == 0.0

    def test_empty(self):
        assert convert_result(SimpleNamespace(hand_landmarks=[], handedness=[])) == []


class TestHandDetector:
    """Test suite for HandDetector."""

    def test_config_from_dict(self):
        config = HandDetectorConfig.from_dict({"max_num_hands": 1, "model_path": None})

        assert config.max_num_hands == 1
        assert config.model_path == ""
        assert config.running_mode == "VIDEO"

    def test_detect_before_start(self):
        detector = HandDetector()

        assert not detector.is_ready
        assert detector.detect(np.zeros((4, 4, 3), dtype=np.uint8), 0) == []

    def test_config_running_mode_normalized(self):
        assert HandDetectorConfig.from_dict({"running_mode": "image"}).running_mode == "IMAGE"

    def test_missing_model_sets_failure_reason(self, tmp_path):
        detector = HandDetector(HandDetectorConfig(model_path=str(tmp_path / "absent.task")))

        assert detector.start() is False
        assert not detector.is_ready
        assert "FileNotFoundError" in detector.failure_reason

    def test_video_timestamps_strictly_increase(self):
        detector = HandDetector()
        detector._landmarker = MagicMock()
        detector._landmarker.detect_for_video.return_value = SimpleNamespace(hand_landmarks=[], handedness=[])

        with patch("gesture_trainer.detection.hand_detector.mp"):
            detector.detect(np.zeros((4, 4, 3), dtype=np.uint8), 100)
            detector.detect(np.zeros((4, 4, 3), dtype=np.uint8), 100)
            detector.detect(np.zeros((4, 4, 3), dtype=np.uint8))

        sent = [c.args[1] for c in detector._landmarker.detect_for_video.call_args_list]
        assert sent == [100, 101, 117]

    def test_stop_closes_landmarker(self):
        detector = HandDetector()
        landmarker = MagicMock()
        detector._landmarker = landmarker

        detector.stop()
        detector.stop()

        landmarker.close.assert_called_once()
        assert not detector.is_ready


class TestDownloadModel:
    """Test suite for the model download."""

    def test_download_renames_into_place(self, tmp_path):
        target = tmp_path / "models" / "hand.task"

        def fake_retrieve(url, path):
            path.write_bytes(b"model")

        with patch("gesture_trainer.detection.hand_detector.urllib.request.urlretrieve", fake_retrieve):
            download_model("http://example.invalid/hand.task", target)

        assert target.read_bytes() == b"model"
        assert not (tmp_path / "models" / "hand.task.part").exists()

    def test_interrupted_download_leaves_nothing(self, tmp_path):
        target = tmp_path / "hand.task"

        def fake_retrieve(url, path):
            path.write_bytes(b"mod")
            raise OSError("connection reset")

        with patch("gesture_trainer.detection.hand_detector.urllib.request.urlretrieve", fake_retrieve):
            with pytest.raises(OSError):
                download_model("http://example.invalid/hand.task", target)

        assert list(tmp_path.iterdir()) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
