"""
Configuration settings using dataclasses.
"""
import os
from dataclasses import dataclass, field
from . import defaults

@dataclass
class ScreenSimSettings:
    """Central configuration for screen simulations."""

    # Output settings
    output_dir: str = field(default=defaults.DEFAULT_OUTPUT_DIR)

    # Simulation settings
    default_seed: int = field(default=defaults.DEFAULT_SEED)
    default_screen_type: str = field(default=defaults.DEFAULT_SCREEN_TYPE)

    # Logging
    log_level: str = field(default=defaults.DEFAULT_LOG_LEVEL)

    @classmethod
    def load_from_env(cls) -> 'ScreenSimSettings':
        """Load settings from environment variables."""
        return cls(
            output_dir=os.getenv("SCREENSIM_OUTPUT_DIR", defaults.DEFAULT_OUTPUT_DIR),
            default_seed=int(os.getenv("SCREENSIM_SEED", defaults.DEFAULT_SEED)),
            default_screen_type=os.getenv("SCREENSIM_SCREEN_TYPE", defaults.DEFAULT_SCREEN_TYPE),
            log_level=os.getenv("SCREENSIM_LOG_LEVEL", defaults.DEFAULT_LOG_LEVEL).upper(),
        )

# Global settings instance
settings = ScreenSimSettings.load_from_env()
