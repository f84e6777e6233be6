"""
Simulation Errors

Every error here is fatal to the current run. They describe a structurally
invalid experiment, not a transient condition, so nothing in the pipeline
retries or recovers from them.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


class ScreenSimulationError(RuntimeError):
    """Base class for all screen simulation failures."""
    pass


class InvalidConfiguration(ScreenSimulationError):
    """Raised for negative sizes, empty libraries or malformed setups."""
    pass


class NoNegativeControls(ScreenSimulationError):
    """Raised when a bin has no negative control guides to normalize against."""

    def __init__(self, bin: Optional[str] = None) -> None:
        msg = (
            "No negative control guides found. Try increasing the frequency "
            "of negative controls or increase the number of genes."
        )
        if bin is not None:
            msg = f"{msg} (bin: {bin})"
        super().__init__(msg)
        self.bin = bin


class MissingBin(ScreenSimulationError):
    """Raised when a requested sequencing bin is absent from the count tables."""

    def __init__(self, bin: str, available=None) -> None:
        available = sorted(available) if available is not None else []
        super().__init__(f"Bin not found: {bin} (available: {available})")
        self.bin = bin
        self.available = available


@dataclass
class GrowthStalled(ScreenSimulationError):
    """Raised when a growth round fails to increase the population."""
    round: int
    size: int
    target: int

    def __post_init__(self) -> None:
        super().__init__(
            f"Population stalled at {self.size} cells after round {self.round} "
            f"(target {self.target})"
        )
