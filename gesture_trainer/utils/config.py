"""
Centralized configuration manager.
Loads the YAML config and provides typed access with defaults.

    - Type and range checks for critical fields (warnings only)
    - Defaults deep-merged under the file contents
    - Config path from the CLI, $GESTURE_TRAINER_CONFIG or the bundled file
    - Reset support for testing
"""

import os
import copy
import logging

import yaml

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

_DEFAULTS = {
    "camera": {
        "device_id": 0,
        "width": 640,
        "height": 480,
        "fps": 60,
        "flip_horizontal": True,
        "threaded": True,
    },
    "mediapipe": {
        "max_num_hands": 2,
        "min_detection_confidence": 0.7,
        "min_presence_confidence": 0.7,
        "min_tracking_confidence": 0.5,
        "running_mode": "VIDEO",
    },
    "filter": {
        "process_noise": 0.1,
        "measurement_noise": 0.8,
    },
    "recognition": {
        "reference_width": 640,
        "reference_height": 480,
        "pinch_threshold_px": 40.0,
        "zoom_threshold_px": 10.0,
    },
    "session": {
        "target_fps": 60,
        "fps_window": 60,
        "history_size": 10,
        "progress_step": 2,
        "prediction_tolerance": 0.02,
    },
    "logging": {
        "level": "INFO",
        "file": None,
    },
}

# Schema: (expected type, lower bound, upper bound); None leaves a side open
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": (int, 0, None),
        "width": (int, 1, None),
        "height": (int, 1, None),
        "fps": (int, 1, None),
    },
    "mediapipe": {
        "max_num_hands": (int, 1, 2),
        "min_detection_confidence": (float, 0.0, 1.0),
        "min_presence_confidence": (float, 0.0, 1.0),
        "min_tracking_confidence": (float, 0.0, 1.0),
    },
    "filter": {
        "process_noise": (float, 0.0, None),
        "measurement_noise": (float, 0.0, None),
    },
    "recognition": {
        "pinch_threshold_px": (float, 0.0, None),
        "zoom_threshold_px": (float, 0.0, None),
    },
    "session": {
        "target_fps": (int, 1, None),
        "history_size": (int, 1, None),
        "progress_step": (int, 1, 100),
        "prediction_tolerance": (float, 0.0, None),
    },
}

CONFIG_ENV_VAR = "GESTURE_TRAINER_CONFIG"


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = base.copy()
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _check_field(name: str, value, rule) -> str:
    """Problem with one config value, or an empty string."""
    expected_type, low, high = rule
    if isinstance(value, bool):
        return f"{name}: expected {expected_type.__name__}, got bool ({value!r})"
    # Allow int where float is expected
    accepted = (int, float) if expected_type is float else expected_type
    if not isinstance(value, accepted):
        return f"{name}: expected {expected_type.__name__}, got {type(value).__name__} ({value!r})"
    if low is not None and value < low:
        return f"{name}: {value!r} is below {low}"
    if high is not None and value > high:
        return f"{name}: {value!r} is above {high}"
    return ""


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = copy.deepcopy(_DEFAULTS)
        return cls._instance

    def load(self, config_path=None):
        """Load configuration from a YAML file on top of the defaults.

        Path resolution: the argument, then $GESTURE_TRAINER_CONFIG, then the
        bundled config/config.yaml.
        """
        config_path = (config_path or os.environ.get(CONFIG_ENV_VAR)
                       or os.path.join(_CONFIG_DIR, "config.yaml"))

        file_data = {}
        try:
            with open(config_path, "r") as f:
                file_data = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)

        if not isinstance(file_data, dict):
            logger.warning("Config root should be a mapping, got %s; using defaults",
                           type(file_data).__name__)
            file_data = {}

        self._data = _deep_merge(copy.deepcopy(_DEFAULTS), file_data)
        self._validate()

        return self

    def _validate(self):
        """Check critical fields for type and range. Problems are logged, not raised."""
        warnings = []
        for section_name, rules in _CONFIG_SCHEMA.items():
            section = self._data.get(section_name)
            if not isinstance(section, dict):
                warnings.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
                continue
            for field_name, rule in rules.items():
                if field_name not in section:
                    continue
                problem = _check_field(f"{section_name}.{field_name}", section[field_name], rule)
                if problem:
                    warnings.append(problem)

        for w in warnings:
            logger.warning("Config validation: %s", w)
        return warnings

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'camera.width'."""
        keys = key_path.split(".")
        value = self._data
        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_section(self, section: str) -> dict:
        """Get an entire config section."""
        value = self._data.get(section, {})
        return value if isinstance(value, dict) else {}

    @property
    def camera(self) -> dict:
        return self.get_section("camera")

    @property
    def mediapipe(self) -> dict:
        return self.get_section("mediapipe")

    @property
    def filter(self) -> dict:
        return self.get_section("filter")

    @property
    def recognition(self) -> dict:
        return self.get_section("recognition")

    @property
    def session(self) -> dict:
        return self.get_section("session")

    @property
    def visualization(self) -> dict:
        return self.get_section("visualization")

    @property
    def logging(self) -> dict:
        return self.get_section("logging")

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
