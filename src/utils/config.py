"""
Centralized configuration manager.
Loads the YAML config, merges it over built-in defaults and provides
dot-path access.
"""

import os
import copy
import yaml
import logging

logger = logging.getLogger(__name__)

_BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
_CONFIG_DIR = os.path.join(_BASE_DIR, "config")

DEFAULTS = {
    "camera": {
        "device_id": 0,
        "width": 640,
        "height": 480,
        "fps": 30,
        "flip_horizontal": True,
        "threaded": True,
    },
    "mediapipe": {
        "model_path": "",
        "max_num_hands": 2,
        "min_detection_confidence": 0.5,
        "min_tracking_confidence": 0.5,
    },
    "recognition": {
        "clamp_strength": False,
        "max_strength": 1.0,
    },
    "simulation": {
        "max_particles": 5000,
        "particle_count": 3000,
        "count_step": 100,
        "max_dt": 0.1,
    },
    "visualization": {
        "width": 960,
        "height": 720,
    },
    "performance": {
        "target_fps": 30,
    },
    "logging": {
        "level": "INFO",
        "log_file": None,
    },
}

# Schema: sections and their expected types
_CONFIG_SCHEMA = {
    "camera": {
        "device_id": int,
        "width": int,
        "height": int,
        "fps": int,
    },
    "mediapipe": {
        "max_num_hands": int,
        "min_detection_confidence": float,
        "min_tracking_confidence": float,
    },
    "recognition": {
        "clamp_strength": bool,
        "max_strength": float,
        "pinch_threshold": float,
        "two_hand_threshold": float,
    },
    "simulation": {
        "max_particles": int,
        "particle_count": int,
        "spring_strength": float,
        "damping": float,
        "noise_strength": float,
        "pulse_speed": float,
        "max_dt": float,
    },
    "performance": {
        "target_fps": int,
    },
}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge override into base dict."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def validate_config(data: dict) -> list:
    """Return a list of schema problems found in ``data``."""
    problems = []
    for section_name, fields in _CONFIG_SCHEMA.items():
        section = data.get(section_name)
        if section is None:
            problems.append(f"Missing config section: '{section_name}'")
            continue
        if not isinstance(section, dict):
            problems.append(f"Section '{section_name}' should be a dict, got {type(section).__name__}")
            continue
        for field_name, expected_type in fields.items():
            if field_name not in section:
                continue
            value = section[field_name]
            # Allow int where float is expected
            if expected_type is float and isinstance(value, (int, float)) and not isinstance(value, bool):
                continue
            if expected_type is int and isinstance(value, bool):
                problems.append(f"{section_name}.{field_name}: expected int, got bool ({value!r})")
                continue
            if not isinstance(value, expected_type):
                problems.append(
                    f"{section_name}.{field_name}: expected {expected_type.__name__}, "
                    f"got {type(value).__name__} ({value!r})"
                )
    return problems


class Config:
    """Singleton configuration manager."""

    _instance = None
    _data = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._data = _deep_merge(DEFAULTS, {})
        return cls._instance

    def load(self, config_path=None):
        """Load configuration from a YAML file, falling back to defaults."""
        config_path = config_path or os.path.join(_CONFIG_DIR, "config.yaml")

        try:
            with open(config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            logger.info("Loaded config from %s", config_path)
        except FileNotFoundError:
            logger.warning("Config file not found: %s, using defaults", config_path)
            loaded = {}

        if not isinstance(loaded, dict):
            logger.warning("Config root should be a mapping, got %s; using defaults",
                           type(loaded).__name__)
            loaded = {}

        self._data = _deep_merge(DEFAULTS, loaded)
        self._validate()
        return self

    def load_dict(self, data: dict):
        """Merge an in-memory mapping over the defaults."""
        self._data = _deep_merge(DEFAULTS, data or {})
        self._validate()
        return self

    def _validate(self):
        problems = validate_config(self._data)
        if problems:
            for p in problems:
                logger.warning("Config validation: %s", p)
        else:
            logger.debug("Config validation passed")

    def get(self, key_path: str, default=None):
        """Get nested config value using dot notation: 'simulation.damping'."""
        value = self._data
        for key in key_path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_section(self, section: str) -> dict:
        return self._data.get(section, {})

    def as_dict(self) -> dict:
        return _deep_merge(self._data, {})

    @classmethod
    def reset(cls):
        """Reset singleton instance (for testing)."""
        cls._instance = None
        cls._data = {}
