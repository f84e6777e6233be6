"""
Configuration loading utilities.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..exceptions import InvalidConfiguration
from ..library import LibraryDesign
from ..setups import ScreenSetup, setup_from_dict
from .defaults import DEFAULT_FIRST_BIN
from .settings import ScreenSimSettings, settings as default_settings


def load_yaml_config(path: str) -> Dict[str, Any]:
    """Load configuration from a YAML file."""
    if not os.path.exists(path):
        return {}

    with open(path, 'r', encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_settings_from_yaml(path: str) -> ScreenSimSettings:
    """Load ScreenSimSettings from a YAML file; unknown keys are ignored."""
    data = load_yaml_config(path)
    valid_keys = ScreenSimSettings.__annotations__.keys()
    filtered_data = {k: v for k, v in data.items() if k in valid_keys}
    return ScreenSimSettings(**filtered_data)


@dataclass
class ExperimentConfig:
    """Everything needed for one simulated screen."""
    name: str
    seed: int
    setup: ScreenSetup
    design: LibraryDesign
    first_bin: str = DEFAULT_FIRST_BIN
    last_bin: Optional[str] = None


def load_experiment_config(source: Union[str, Path, Dict[str, Any]],
                           settings: Optional[ScreenSimSettings] = None) -> ExperimentConfig:
    """
    Build an ExperimentConfig from a YAML file or an already-parsed mapping.

    Expected layout:

        name: growth_demo
        seed: 7
        screen:
          type: growth          # or facs
          representation: 100
          bottleneck_representation: 100
        library:
          num_genes: 100
          guides_per_gene: 5
          behavior: knockout    # or knockdown
        analysis:
          first_bin: bin1
          last_bin: bin2
    """
    settings = settings or default_settings
    if isinstance(source, dict):
        config = source
    else:
        if not os.path.exists(source):
            raise InvalidConfiguration(f"Config file not found: {source}")
        config = load_yaml_config(str(source))

    screen = dict(config.get("screen") or {})
    screen.setdefault("type", settings.default_screen_type)
    analysis = config.get("analysis") or {}

    return ExperimentConfig(
        name=str(config.get("name", "screen")),
        seed=int(config.get("seed", settings.default_seed)),
        setup=setup_from_dict(screen),
        design=LibraryDesign.from_dict(config.get("library")),
        first_bin=analysis.get("first_bin", DEFAULT_FIRST_BIN),
        last_bin=analysis.get("last_bin"),
    )
