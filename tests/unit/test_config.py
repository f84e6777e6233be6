"""
Test configuration management.
"""
import os
from unittest import mock

import pytest

from screen_sim.config.settings import ScreenSimSettings, defaults
from screen_sim.exceptions import InvalidConfiguration
from screen_sim.library import Knockout
from screen_sim.setups import FacsScreen, GrowthScreen, setup_from_dict, setup_from_yaml


def test_defaults():
    """Test default values are loaded correctly."""
    settings = ScreenSimSettings()
    assert settings.output_dir == defaults.DEFAULT_OUTPUT_DIR
    assert settings.default_seed == 0
    assert settings.default_screen_type == "facs"
    assert settings.log_level == "INFO"

def test_env_override():
    """Test environment variables override defaults."""
    with mock.patch.dict(os.environ, {
        "SCREENSIM_SEED": "17",
        "SCREENSIM_SCREEN_TYPE": "growth",
        "SCREENSIM_LOG_LEVEL": "debug",
    }):
        settings = ScreenSimSettings.load_from_env()
        assert settings.default_seed == 17
        assert settings.default_screen_type == "growth"
        assert settings.log_level == "DEBUG"

def test_load_yaml(tmp_path):
    """Test loading settings from YAML."""
    from screen_sim.config.loader import load_settings_from_yaml

    config_file = tmp_path / "config.yaml"
    config_file.write_text("""
default_seed: 5
output_dir: "out"
unknown_key: "should be ignored"
    """)

    settings = load_settings_from_yaml(str(config_file))
    assert settings.default_seed == 5
    assert settings.output_dir == "out"
    # Should fall back to defaults for missing keys
    assert settings.log_level == defaults.DEFAULT_LOG_LEVEL

def test_load_yaml_missing_file(tmp_path):
    from screen_sim.config.loader import load_yaml_config
    assert load_yaml_config(str(tmp_path / "nope.yaml")) == {}


class TestExperimentConfig:
    """Tests for experiment config parsing."""

    def test_from_mapping(self):
        from screen_sim.config.loader import load_experiment_config
        config = load_experiment_config({
            "name": "ko_growth",
            "seed": 9,
            "screen": {"type": "growth", "representation": 50, "num_bottlenecks": 3},
            "library": {"num_genes": 20, "behavior": "knockout"},
            "analysis": {"last_bin": "bin2"},
        })
        assert config.name == "ko_growth"
        assert config.seed == 9
        assert isinstance(config.setup, GrowthScreen)
        assert config.setup.num_bottlenecks == 3
        assert isinstance(config.design.behavior, Knockout)
        assert config.last_bin == "bin2"

    def test_screen_type_defaults_from_settings(self):
        from screen_sim.config.loader import load_experiment_config
        settings = ScreenSimSettings(default_screen_type="growth", default_seed=3)
        config = load_experiment_config({}, settings=settings)
        assert isinstance(config.setup, GrowthScreen)
        assert config.seed == 3

    def test_from_yaml(self, tmp_path):
        from screen_sim.config.loader import load_experiment_config
        path = tmp_path / "screen.yaml"
        path.write_text("""
name: facs_demo
screen:
  type: facs
  sigma: 0.5
  bin_info:
    low: [0.0, 0.25]
    high: [0.75, 1.0]
library:
  num_genes: 10
""")
        config = load_experiment_config(path)
        assert isinstance(config.setup, FacsScreen)
        assert config.setup.bin_info == {"low": (0.0, 0.25), "high": (0.75, 1.0)}
        assert config.design.num_genes == 10

    def test_missing_file(self, tmp_path):
        from screen_sim.config.loader import load_experiment_config
        with pytest.raises(InvalidConfiguration):
            load_experiment_config(tmp_path / "missing.yaml")


class TestSetups:
    """Tests for screen setup validation."""

    def test_unknown_type(self):
        with pytest.raises(InvalidConfiguration):
            setup_from_dict({"type": "droplet"})

    def test_unknown_parameter(self):
        with pytest.raises(InvalidConfiguration):
            setup_from_dict({"type": "facs", "noise": 0.1})

    @pytest.mark.parametrize("kwargs", [
        {"representation": 0},
        {"bottleneck_representation": -5},
        {"moi": 0.0},
        {"seq_depth": 0},
        {"sigma": -1.0},
        {"bin_info": {"bin1": (0.0, 0.5)}},
        {"bin_info": {"bin1": (0.5, 0.2), "bin2": (0.6, 1.0)}},
    ])
    def test_invalid_facs(self, kwargs):
        with pytest.raises(InvalidConfiguration):
            FacsScreen(**kwargs)

    @pytest.mark.parametrize("kwargs", [{"noise": -0.1}, {"num_bottlenecks": -1}])
    def test_invalid_growth(self, kwargs):
        with pytest.raises(InvalidConfiguration):
            GrowthScreen(**kwargs)

    def test_setup_from_yaml(self, tmp_path):
        path = tmp_path / "setup.yaml"
        path.write_text("screen:\n  type: growth\n  noise: 0.05\n")
        setup = setup_from_yaml(path)
        assert setup == GrowthScreen(noise=0.05)
