"""
Guide Library Model.

A Library is an ordered set of Barcodes (guides). The position of a barcode in
the library is its identity: cell arrays elsewhere store 0-based indices into
`Library.barcodes`.

Libraries are constructed from a LibraryDesign, which describes how genes are
split between phenotype classes, how strongly each guide knocks down its
target, and how unevenly guides are represented in the plasmid pool.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy import stats

from .distributions import Categorical, Delta, Mixture, from_spec, sample, truncated_normal
from .exceptions import InvalidConfiguration

logger = logging.getLogger(__name__)


class Behavior(str, Enum):
    """Response of a gene's phenotype to the degree of knockdown."""
    LINEAR = "linear"
    SIGMOIDAL = "sigmoidal"


class ScreenClass(str, Enum):
    """Ground-truth phenotype class of a gene."""
    INCREASING = "increasing"   # positive phenotype
    DECREASING = "decreasing"   # negative phenotype
    INACTIVE = "inactive"       # no phenotype
    NEGCONTROL = "negcontrol"   # negative control guide


def default_knockout_dist() -> Categorical:
    # Allele states: 1 = both alleles in frame, 2 = one disrupted, 3 = both disrupted
    return Categorical([1 / 9, 4 / 9, 4 / 9], values=[1, 2, 3])


@dataclass
class Knockdown:
    """CRISPRi: continuous, guide-dependent knockdown of the target."""
    name: str = "CRISPRi"


@dataclass
class Knockout:
    """
    CRISPRKO: binary per-allele knockout.

    Each cell draws an allele state from `knockout_dist`; the phenotype is
    scaled by (state - 1) / 2, so the largest state gives the full theoretical
    phenotype and the smallest gives none.
    """
    knockout_dist: Categorical = field(default_factory=default_knockout_dist)
    name: str = "CRISPRKO"


PerturbationBehavior = Union[Knockdown, Knockout]


@dataclass(frozen=True)
class Barcode:
    """A single guide and its ground truth."""
    barcode_id: int
    gene: int
    knockdown: float
    theo_phenotype: float
    behavior: Behavior
    screen_class: ScreenClass
    initial_freq: float = float("nan")


@dataclass
class Library:
    """Ordered guide library plus the parameters it was generated from."""
    barcodes: List[Barcode]
    behavior: PerturbationBehavior
    guide_freq_dist: Categorical
    max_phenotype_dists: Dict[ScreenClass, Tuple[float, Any]] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.barcodes)

    @property
    def num_guides(self) -> int:
        return len(self.barcodes)

    @property
    def initial_freqs(self) -> np.ndarray:
        return np.array([b.initial_freq for b in self.barcodes], dtype=float)

    def with_initial_freqs(self, freqs: Sequence[float]) -> "Library":
        """Return a copy of this library with realized initial frequencies set."""
        freqs = np.asarray(freqs, dtype=float)
        if len(freqs) != len(self.barcodes):
            raise InvalidConfiguration(
                f"{len(freqs)} frequencies for a library of {len(self.barcodes)} guides"
            )
        barcodes = [replace(b, initial_freq=float(f)) for b, f in zip(self.barcodes, freqs)]
        return replace(self, barcodes=barcodes)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "barcodeid": [b.barcode_id for b in self.barcodes],
            "gene": [b.gene for b in self.barcodes],
            "knockdown": [b.knockdown for b in self.barcodes],
            "theo_phenotype": [b.theo_phenotype for b in self.barcodes],
            "behavior": [b.behavior.value for b in self.barcodes],
            "class": [b.screen_class.value for b in self.barcodes],
            "initial_freq": [b.initial_freq for b in self.barcodes],
        })


def default_max_phenotype_dists() -> Dict[ScreenClass, Tuple[float, Any]]:
    return {
        ScreenClass.INACTIVE: (0.75, Delta(0.0)),
        ScreenClass.NEGCONTROL: (0.05, Delta(0.0)),
        ScreenClass.INCREASING: (0.05, truncated_normal(0.1, 0.1, 0.025, 1.0)),
        ScreenClass.DECREASING: (0.15, truncated_normal(-0.55, 0.2, -1.0, -0.1)),
    }


def default_knockdown_dist() -> Mixture:
    # mostly highly active guides, with a tail of poor ones
    return Mixture(
        [truncated_normal(0.9, 0.1, 0.75, 1.0), truncated_normal(0.05, 0.07, 0.0, 0.75)],
        [0.9, 0.1],
    )


def default_behavior_weights() -> Dict[Behavior, float]:
    return {Behavior.LINEAR: 0.75, Behavior.SIGMOIDAL: 0.25}


@dataclass
class LibraryDesign:
    """Parameters for constructing a guide library."""
    num_genes: int = 500
    guides_per_gene: int = 5
    behavior: PerturbationBehavior = field(default_factory=Knockdown)
    max_phenotype_dists: Dict[ScreenClass, Tuple[float, Any]] = field(
        default_factory=default_max_phenotype_dists
    )
    behavior_weights: Dict[Behavior, float] = field(default_factory=default_behavior_weights)
    knockdown_dist: Any = field(default_factory=default_knockdown_dist)
    frequency_sigma: float = 0.6
    sigmoid_center: float = 0.5
    sigmoid_slope: float = 12.0

    def __post_init__(self):
        if self.num_genes <= 0:
            raise InvalidConfiguration(f"num_genes must be positive, got {self.num_genes}")
        if self.guides_per_gene <= 0:
            raise InvalidConfiguration(
                f"guides_per_gene must be positive, got {self.guides_per_gene}"
            )
        if self.frequency_sigma < 0:
            raise InvalidConfiguration("frequency_sigma must be non-negative")
        total = sum(frac for frac, _ in self.max_phenotype_dists.values())
        if not math.isclose(total, 1.0, abs_tol=1e-6):
            raise InvalidConfiguration(
                f"Phenotype class fractions must sum to 1, got {total:.6f}"
            )

    @property
    def num_guides(self) -> int:
        return self.num_genes * self.guides_per_gene

    @classmethod
    def from_dict(cls, cfg: Optional[Dict[str, Any]]) -> "LibraryDesign":
        """
        Build a design from a config mapping (e.g. the `library:` YAML block).

        Missing keys fall back to the defaults above.
        """
        cfg = dict(cfg or {})
        kwargs: Dict[str, Any] = {}
        for key in ("num_genes", "guides_per_gene", "frequency_sigma",
                    "sigmoid_center", "sigmoid_slope"):
            if key in cfg:
                kwargs[key] = cfg[key]

        kwargs["behavior"] = behavior_from_name(
            cfg.get("behavior", "knockdown"), cfg.get("knockout_weights")
        )

        if "max_phenotype_dists" in cfg:
            dists = {}
            for name, (fraction, spec) in cfg["max_phenotype_dists"].items():
                dists[_screen_class(name)] = (float(fraction), from_spec(spec))
            kwargs["max_phenotype_dists"] = dists

        if "behavior_weights" in cfg:
            kwargs["behavior_weights"] = {
                Behavior(name): float(w) for name, w in cfg["behavior_weights"].items()
            }

        if "knockdown_dist" in cfg:
            kwargs["knockdown_dist"] = from_spec(cfg["knockdown_dist"])

        return cls(**kwargs)


def _screen_class(name: str) -> ScreenClass:
    try:
        return ScreenClass(name)
    except ValueError:
        raise InvalidConfiguration(f"Unknown screen class: {name}") from None


def behavior_from_name(name: str, knockout_weights: Optional[Sequence[float]] = None) -> PerturbationBehavior:
    key = str(name).lower()
    if key in ("knockdown", "crispri"):
        return Knockdown()
    if key in ("knockout", "crisprko"):
        if knockout_weights is None:
            return Knockout()
        return Knockout(Categorical(knockout_weights, values=[1, 2, 3]))
    raise InvalidConfiguration(f"Unknown perturbation behavior: {name}")


def linear_response(knockdown: np.ndarray, max_phenotype: float) -> np.ndarray:
    return knockdown * max_phenotype


def sigmoidal_response(knockdown: np.ndarray, max_phenotype: float,
                       center: float = 0.5, slope: float = 12.0) -> np.ndarray:
    """Logistic response in knockdown, scaled to reach `max_phenotype` at full knockdown."""
    logistic = stats.logistic.cdf(slope * (knockdown - center))
    ceiling = stats.logistic.cdf(slope * (1.0 - center))
    return max_phenotype * logistic / ceiling


def construct_library(design: LibraryDesign, rng: np.random.Generator) -> Library:
    """
    Generate a Library from a design.

    Per gene: draw a phenotype class, a response behavior and a maximum
    phenotype. Per guide: draw a knockdown level and derive the theoretical
    phenotype from the gene's response curve. Knockout libraries use the
    maximum phenotype directly; per-cell allele states add the variability.

    Args:
        design: Library parameters
        rng: Generator for all library draws

    Returns:
        Library with `initial_freq` unset (NaN) on every barcode
    """
    classes = list(design.max_phenotype_dists)
    class_dist = Categorical([design.max_phenotype_dists[c][0] for c in classes])
    behaviors = list(design.behavior_weights)
    behavior_dist = Categorical([design.behavior_weights[b] for b in behaviors])

    gene_classes = class_dist.sample(rng, design.num_genes)
    gene_behaviors = behavior_dist.sample(rng, design.num_genes)
    knockout = isinstance(design.behavior, Knockout)

    barcodes: List[Barcode] = []
    for gene in range(design.num_genes):
        screen_class = classes[int(gene_classes[gene])]
        behavior = behaviors[int(gene_behaviors[gene])]
        max_phenotype = float(sample(design.max_phenotype_dists[screen_class][1], rng))

        if knockout:
            knockdowns = np.ones(design.guides_per_gene)
            phenotypes = np.full(design.guides_per_gene, max_phenotype)
        else:
            knockdowns = np.clip(sample(design.knockdown_dist, rng, design.guides_per_gene), 0.0, 1.0)
            if behavior is Behavior.LINEAR:
                phenotypes = linear_response(knockdowns, max_phenotype)
            else:
                phenotypes = sigmoidal_response(
                    knockdowns, max_phenotype, design.sigmoid_center, design.sigmoid_slope
                )

        for kd, phenotype in zip(knockdowns, phenotypes):
            barcodes.append(Barcode(
                barcode_id=len(barcodes),
                gene=gene,
                knockdown=float(kd),
                theo_phenotype=float(phenotype),
                behavior=behavior,
                screen_class=screen_class,
            ))

    if design.frequency_sigma > 0:
        weights = stats.lognorm(s=design.frequency_sigma).rvs(size=len(barcodes), random_state=rng)
    else:
        weights = np.ones(len(barcodes))

    counts = {c.value: int((gene_classes == i).sum()) for i, c in enumerate(classes)}
    logger.info("Constructed %s library: %d guides over %d genes %s",
                getattr(design.behavior, "name", type(design.behavior).__name__),
                len(barcodes), design.num_genes, counts)

    return Library(
        barcodes=barcodes,
        behavior=design.behavior,
        guide_freq_dist=Categorical(weights),
        max_phenotype_dists=design.max_phenotype_dists,
    )
