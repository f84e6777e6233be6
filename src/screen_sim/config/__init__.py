"""Configuration: defaults, environment settings and YAML loading."""

from .settings import ScreenSimSettings, settings
from .loader import (
    ExperimentConfig,
    load_experiment_config,
    load_settings_from_yaml,
    load_yaml_config,
)

__all__ = [
    "ScreenSimSettings",
    "settings",
    "ExperimentConfig",
    "load_experiment_config",
    "load_settings_from_yaml",
    "load_yaml_config",
]
