"""screen_sim - In-silico simulation of pooled CRISPR screens."""

__version__ = "0.1.0"

from screen_sim.exceptions import (
    GrowthStalled,
    InvalidConfiguration,
    MissingBin,
    NoNegativeControls,
    ScreenSimulationError,
)
from screen_sim.library import (
    Barcode,
    Behavior,
    Knockdown,
    Knockout,
    Library,
    LibraryDesign,
    ScreenClass,
    construct_library,
)
from screen_sim.setups import FacsScreen, GrowthScreen
from screen_sim.transfection import build_cells, transfect
from screen_sim.selection import grow, expand_to_target, select
from screen_sim.sequencing import sequencing
from screen_sim.processing import differences_between_bins
from screen_sim.experiment import ExperimentResult, run_experiment

__all__ = [
    "Barcode",
    "Behavior",
    "Knockdown",
    "Knockout",
    "Library",
    "LibraryDesign",
    "ScreenClass",
    "construct_library",
    "FacsScreen",
    "GrowthScreen",
    "build_cells",
    "transfect",
    "grow",
    "expand_to_target",
    "select",
    "sequencing",
    "differences_between_bins",
    "ExperimentResult",
    "run_experiment",
    "ScreenSimulationError",
    "InvalidConfiguration",
    "NoNegativeControls",
    "GrowthStalled",
    "MissingBin",
]
