"""
Tests for the command-line entry point.
"""

import pytest

pytest.importorskip("mediapipe")

from gesture_trainer.main import parse_args, create_app_config  # noqa: E402
from gesture_trainer.utils.config import Config  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_config():
    Config.reset()
    yield
    Config.reset()


class TestParseArgs:
    """Test suite for argument parsing."""

    def test_defaults(self):
        args = parse_args([])

        assert args.config is None
        assert args.camera is None
        assert args.log_file is None
        assert not args.debug

    def test_options(self):
        args = parse_args(["--config", "x.yaml", "--camera", "1", "--log-file", "out.log", "-d"])

        assert args.config == "x.yaml"
        assert args.camera == 1
        assert args.log_file == "out.log"
        assert args.debug


class TestAppConfig:
    """Test suite for building component configs."""

    def test_create_app_config(self):
        app_config = create_app_config(Config().load())

        assert app_config.camera.width == 640
        assert app_config.mediapipe.max_num_hands == 2
        assert app_config.filter.measurement_noise == 0.8
        assert app_config.recognition.pinch_threshold_px == 40.0
        assert app_config.session.progress_step == 2
        assert app_config.visualization.show_prediction


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
