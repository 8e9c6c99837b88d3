"""
Configuration management for the screenshot pipeline.
Values come from the environment (and a .env file), and can be overridden
by a YAML file.
"""

import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from .geometry import PaddingConfig

load_dotenv()


class Config:
    """Pipeline configuration class."""

    # Container
    CONTAINER_SELECTOR = os.getenv('CONTAINER_SELECTOR', '.container')
    SELECTOR_TIMEOUT_MS = int(os.getenv('SELECTOR_TIMEOUT_MS', 5000))

    # Browser
    HEADLESS = os.getenv('HEADLESS', 'true').lower() == 'true'
    NAVIGATION_TIMEOUT_MS = int(os.getenv('NAVIGATION_TIMEOUT_MS', 30000))

    # Measurement (the two passes pad differently)
    INITIAL_PADDING = float(os.getenv('INITIAL_PADDING', 15))
    FINAL_PADDING = float(os.getenv('FINAL_PADDING', 20))

    # Viewport floor
    MIN_VIEWPORT_WIDTH = int(os.getenv('MIN_VIEWPORT_WIDTH', 1000))
    MIN_VIEWPORT_HEIGHT = int(os.getenv('MIN_VIEWPORT_HEIGHT', 800))

    # Settling after resize
    SETTLE_FIRST_MS = int(os.getenv('SETTLE_FIRST_MS', 500))
    SETTLE_SECOND_MS = int(os.getenv('SETTLE_SECOND_MS', 300))
    STABILITY_MAX_ATTEMPTS = int(os.getenv('STABILITY_MAX_ATTEMPTS', 5))

    # Output
    DEFAULT_OUTPUT = os.getenv('DEFAULT_OUTPUT', 'screenshot.png')
    DEFAULT_QUALITY = int(os.getenv('DEFAULT_QUALITY', 100))

    # Card templates
    STYLE_DIR = os.getenv('STYLE_DIR', './Style')
    TEMPLATE_NAME = os.getenv('TEMPLATE_NAME', 'template.html')
    BACKGROUND_DIR = os.getenv('BACKGROUND_DIR', '')  # empty means STYLE_DIR/backgrounds

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def from_yaml(cls, config_path: Path) -> "Config":
        """Create a config whose attributes are overridden by a YAML file."""
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found at {config_path}")
        with open(config_path, 'r') as f:
            overrides = yaml.safe_load(f) or {}
        if not isinstance(overrides, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")

        config = cls()
        for key, value in overrides.items():
            name = str(key).upper()
            if not hasattr(cls, name):
                raise ValueError(f"Unknown configuration key: {key}")
            setattr(config, name, cls._coerce(key, getattr(cls, name), value))
        return config

    @staticmethod
    def _coerce(key, default, value):
        """Convert a YAML value to the type of the environment default."""
        if isinstance(default, bool):
            if isinstance(value, bool):
                return value
            if isinstance(value, str) and value.lower() in ('true', 'false'):
                return value.lower() == 'true'
            raise ValueError(f"Invalid value for {key}: {value!r} (expected true or false)")
        if isinstance(value, bool) or value is None or isinstance(value, (list, dict)):
            raise ValueError(f"Invalid value for {key}: {value!r}")
        if isinstance(default, int) and isinstance(value, float) and not value.is_integer():
            raise ValueError(f"Invalid value for {key}: {value!r} (expected an integer)")
        try:
            return type(default)(value)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid value for {key}: {value!r}") from None

    @property
    def padding(self) -> PaddingConfig:
        return PaddingConfig(initial=self.INITIAL_PADDING, final=self.FINAL_PADDING)

    def validate_config(self, quality: Optional[int] = None):
        """Validate configuration values."""
        errors = []

        if not self.CONTAINER_SELECTOR:
            errors.append("Container selector must not be empty")

        if self.SELECTOR_TIMEOUT_MS <= 0:
            errors.append("Selector timeout must be positive")

        if self.INITIAL_PADDING < 0 or self.FINAL_PADDING < 0:
            errors.append("Padding must not be negative")

        if self.MIN_VIEWPORT_WIDTH <= 0 or self.MIN_VIEWPORT_HEIGHT <= 0:
            errors.append("Minimum viewport dimensions must be positive")

        if self.SETTLE_FIRST_MS < 0 or self.SETTLE_SECOND_MS < 0:
            errors.append("Settle windows must not be negative")

        if self.STABILITY_MAX_ATTEMPTS < 2:
            errors.append("Stability check needs at least 2 attempts")

        if not 0 <= self.DEFAULT_QUALITY <= 100:
            errors.append("Default quality must be between 0 and 100")

        if quality is not None and not 0 <= quality <= 100:
            errors.append("Quality must be between 0 and 100")

        if errors:
            raise ValueError(f"Configuration errors: {'; '.join(errors)}")

        return True


config = Config()
