"""
Screen setups.

A setup is immutable configuration describing how a screen is run: how many
cells per guide are transfected, the bottleneck size, the MOI and how deeply
each bin is sequenced. The setup type (FACS vs growth) selects the
transfection, selection and phenotype-assignment strategy.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

import yaml

from .exceptions import InvalidConfiguration


def _default_bins() -> Dict[str, Tuple[float, float]]:
    return {"bin1": (0.0, 1 / 3), "bin2": (2 / 3, 1.0)}


def _validate_common(setup) -> None:
    if setup.representation <= 0:
        raise InvalidConfiguration(f"representation must be positive, got {setup.representation}")
    if setup.bottleneck_representation <= 0:
        raise InvalidConfiguration(
            f"bottleneck_representation must be positive, got {setup.bottleneck_representation}"
        )
    if setup.moi <= 0:
        raise InvalidConfiguration(f"moi must be positive, got {setup.moi}")
    if setup.seq_depth <= 0:
        raise InvalidConfiguration(f"seq_depth must be positive, got {setup.seq_depth}")


@dataclass(frozen=True)
class FacsScreen:
    """
    FACS sorting screen.

    Phenotypes are assigned without measurement noise at transfection; the
    sorter adds Normal(0, sigma) noise when cells are binned.
    """
    representation: int = 1000
    bottleneck_representation: int = 1000
    moi: float = 0.25
    seq_depth: int = 1000
    sigma: float = 1.0
    bin_info: Dict[str, Tuple[float, float]] = field(default_factory=_default_bins)

    def __post_init__(self):
        _validate_common(self)
        if self.sigma < 0:
            raise InvalidConfiguration(f"sigma must be non-negative, got {self.sigma}")
        if len(self.bin_info) < 2:
            raise InvalidConfiguration("A FACS screen needs at least two bins")
        for name, (lo, hi) in self.bin_info.items():
            if not 0.0 <= lo < hi <= 1.0:
                raise InvalidConfiguration(f"Bin {name} has invalid quantile range ({lo}, {hi})")


@dataclass(frozen=True)
class GrowthScreen:
    """
    Growth (proliferation) screen.

    Each cell's phenotype carries Normal(0, noise) measurement noise. After
    transfection the population goes through `num_bottlenecks` rounds of
    growth followed by down-sampling.
    """
    representation: int = 1000
    bottleneck_representation: int = 1000
    moi: float = 0.25
    seq_depth: int = 1000
    noise: float = 0.01
    num_bottlenecks: int = 20

    def __post_init__(self):
        _validate_common(self)
        if self.noise < 0:
            raise InvalidConfiguration(f"noise must be non-negative, got {self.noise}")
        if self.num_bottlenecks < 0:
            raise InvalidConfiguration(
                f"num_bottlenecks must be non-negative, got {self.num_bottlenecks}"
            )


ScreenSetup = Union[FacsScreen, GrowthScreen]

SETUP_TYPES = {
    "facs": FacsScreen,
    "growth": GrowthScreen,
}


def setup_from_dict(cfg: Dict[str, Any]) -> ScreenSetup:
    """
    Build a setup from a config mapping, e.g.

        type: growth
        representation: 100
        bottleneck_representation: 100
        num_bottlenecks: 10
    """
    cfg = dict(cfg or {})
    kind = str(cfg.pop("type", "facs")).lower()
    if kind not in SETUP_TYPES:
        raise InvalidConfiguration(
            f"Unknown screen type: {kind} (expected one of {sorted(SETUP_TYPES)})"
        )
    cls = SETUP_TYPES[kind]
    valid = {f.name for f in fields(cls)}
    unknown = set(cfg) - valid
    if unknown:
        raise InvalidConfiguration(f"Unknown {kind} screen parameters: {sorted(unknown)}")
    if "bin_info" in cfg:
        cfg["bin_info"] = {name: tuple(rng) for name, rng in cfg["bin_info"].items()}
    return cls(**cfg)


def setup_from_yaml(path: Union[str, Path]) -> ScreenSetup:
    """Load a setup from the `screen:` block of a YAML file."""
    cfg = yaml.safe_load(Path(path).read_text()) or {}
    return setup_from_dict(cfg.get("screen", cfg))


__all__ = ["FacsScreen", "GrowthScreen", "ScreenSetup", "setup_from_dict", "setup_from_yaml"]
