"""
Default configuration values.
"""
import os

# Base paths
BASE_DIR = os.getcwd()
DEFAULT_OUTPUT_DIR = os.path.join(BASE_DIR, "results", "screens")

# Simulation defaults
DEFAULT_SEED = 0
DEFAULT_SCREEN_TYPE = "facs"
DEFAULT_FIRST_BIN = "bin1"

# Logging defaults
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
