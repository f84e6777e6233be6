"""
Transfection: from a guide library to an initial cell population.

Cells are represented as two parallel arrays, `cells` (0-based guide index)
and `phenotypes` (per-cell phenotype). The phenotype of a cell depends on the
perturbation behavior (knockdown vs knockout) and the screen type (growth vs
FACS); each of the four combinations is a named function registered in
PHENOTYPE_MODELS.

Only cells receiving exactly one integration survive selection, so the
number of cells built is the seeded cell count thinned by P(Poisson(moi) = 1).
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Callable, Dict, Sequence, Tuple

import numpy as np
from scipy import stats

from .distributions import Categorical, sample
from .exceptions import InvalidConfiguration
from .library import Barcode, Knockdown, Knockout, Library, PerturbationBehavior
from .selection import bottleneck, expand_to_target
from .setups import FacsScreen, GrowthScreen, ScreenSetup

logger = logging.getLogger(__name__)


# -- phenotype models ---------------------------------------------------------

def knockout_scaling(states: np.ndarray) -> np.ndarray:
    """Map allele states onto phenotype scaling: min state -> 0, max state -> 1."""
    return (np.asarray(states, dtype=float) - 1.0) / 2.0


def knockdown_growth_phenotypes(theo: np.ndarray, behavior: Knockdown,
                                setup: GrowthScreen, rng: np.random.Generator) -> np.ndarray:
    return theo + rng.normal(0.0, setup.noise, size=len(theo))


def knockdown_facs_phenotypes(theo: np.ndarray, behavior: Knockdown,
                              setup: FacsScreen, rng: np.random.Generator) -> np.ndarray:
    return np.array(theo, dtype=float, copy=True)


def knockout_growth_phenotypes(theo: np.ndarray, behavior: Knockout,
                               setup: GrowthScreen, rng: np.random.Generator) -> np.ndarray:
    states = sample(behavior.knockout_dist, rng, len(theo))
    return theo * knockout_scaling(states) + rng.normal(0.0, setup.noise, size=len(theo))


def knockout_facs_phenotypes(theo: np.ndarray, behavior: Knockout,
                             setup: FacsScreen, rng: np.random.Generator) -> np.ndarray:
    states = sample(behavior.knockout_dist, rng, len(theo))
    return theo * knockout_scaling(states)


PhenotypeModel = Callable[[np.ndarray, PerturbationBehavior, ScreenSetup, np.random.Generator], np.ndarray]

PHENOTYPE_MODELS: Dict[Tuple[type, type], PhenotypeModel] = {
    (Knockdown, GrowthScreen): knockdown_growth_phenotypes,
    (Knockdown, FacsScreen): knockdown_facs_phenotypes,
    (Knockout, GrowthScreen): knockout_growth_phenotypes,
    (Knockout, FacsScreen): knockout_facs_phenotypes,
}


def build_cells(behavior: PerturbationBehavior,
                guides: Sequence[Barcode],
                guide_freq_dist: Categorical,
                n: int,
                setup: ScreenSetup,
                rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """
    Draw `n` cells and assign each a phenotype.

    Args:
        behavior: Knockdown or Knockout
        guides: Library barcodes, indexed by guide id
        guide_freq_dist: Categorical over guide indices
        n: Number of cells
        setup: FacsScreen or GrowthScreen
        rng: Generator for all draws

    Returns:
        (cells, phenotypes) arrays of length n
    """
    if n < 0:
        raise InvalidConfiguration(f"Cell count must be non-negative, got {n}")
    if len(guides) == 0:
        raise InvalidConfiguration("Cannot build cells from an empty library")
    if len(guide_freq_dist) != len(guides):
        raise InvalidConfiguration(
            f"Guide frequency distribution covers {len(guide_freq_dist)} guides, "
            f"library has {len(guides)}"
        )
    try:
        model = PHENOTYPE_MODELS[(type(behavior), type(setup))]
    except KeyError:
        raise InvalidConfiguration(
            f"No phenotype model for {type(behavior).__name__} x {type(setup).__name__}"
        ) from None

    cells = np.asarray(guide_freq_dist.sample(rng, int(n)), dtype=np.int64)
    theo = np.array([g.theo_phenotype for g in guides], dtype=float)[cells]
    return cells, model(theo, behavior, setup, rng)


# -- transfection pipeline ----------------------------------------------------

@dataclass
class TransfectionResult:
    """
    Population after transfection and bottleneck/expansion.

    `library` is a new Library whose barcodes carry the realized initial
    frequencies. `num_doublings` is -1 when a growth screen was bottlenecked
    down instead of expanded.
    """
    cells: np.ndarray
    phenotypes: np.ndarray
    library: Library
    num_doublings: int = 0

    def __len__(self) -> int:
        return len(self.cells)


def single_integration_count(cell_count: int, moi: float) -> int:
    """Expected number of cells with exactly one integration."""
    return int(round(stats.poisson.pmf(1, moi) * cell_count))


def realized_frequencies(cells: np.ndarray, num_guides: int) -> np.ndarray:
    if len(cells) == 0:
        raise InvalidConfiguration("Cannot compute guide frequencies of an empty population")
    return np.bincount(cells, minlength=num_guides)[:num_guides] / len(cells)


def _build_initial(setup: ScreenSetup, library: Library,
                   rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    num_guides = library.num_guides
    if num_guides == 0:
        raise InvalidConfiguration("Cannot transfect an empty library")
    n = single_integration_count(num_guides * setup.representation, setup.moi)
    if n == 0:
        raise InvalidConfiguration(
            f"No singly-infected cells at moi={setup.moi} and representation={setup.representation}"
        )
    return build_cells(library.behavior, library.barcodes, library.guide_freq_dist, n, setup, rng)


def _transfect_facs(setup: FacsScreen, library: Library, rng: np.random.Generator) -> TransfectionResult:
    cells, phenotypes = _build_initial(setup, library, rng)
    num_cells = len(cells)
    expand_to = setup.bottleneck_representation * library.num_guides

    if expand_to > num_cells:
        # linear expansion: whole-population copies, no selection
        multiples = math.ceil(expand_to / num_cells)
        cells, phenotypes = np.tile(cells, multiples), np.tile(phenotypes, multiples)
        logger.info("FACS transfection: %d cells tiled x%d to %d", num_cells, multiples, len(cells))
    else:
        cells, phenotypes = bottleneck(cells, phenotypes, expand_to, rng)
        logger.info("FACS transfection: %d cells bottlenecked to %d", num_cells, expand_to)

    freqs = realized_frequencies(cells, library.num_guides)
    return TransfectionResult(cells, phenotypes, library.with_initial_freqs(freqs), 0)


def _transfect_growth(setup: GrowthScreen, library: Library, rng: np.random.Generator) -> TransfectionResult:
    cells, phenotypes = _build_initial(setup, library, rng)
    num_cells = len(cells)
    target = library.num_guides * setup.bottleneck_representation

    if target < num_cells:
        cells, phenotypes = bottleneck(cells, phenotypes, target, rng)
        num_doublings = -1
        logger.info("Growth transfection: %d cells bottlenecked to %d", num_cells, target)
    else:
        cells, phenotypes, num_doublings = expand_to_target(cells, phenotypes, target, rng)
        logger.info("Growth transfection: %d cells grown to %d in %d rounds",
                    num_cells, len(cells), num_doublings)

    freqs = realized_frequencies(cells, library.num_guides)
    return TransfectionResult(cells, phenotypes, library.with_initial_freqs(freqs), num_doublings)


TRANSFECTION_STRATEGIES = {
    FacsScreen: _transfect_facs,
    GrowthScreen: _transfect_growth,
}


def transfect(setup: ScreenSetup, library: Library, rng: np.random.Generator) -> TransfectionResult:
    """
    Transfect `library` into a cell population according to `setup`.

    The input library is not modified; the returned result carries a new
    Library with `initial_freq` set on every barcode (summing to 1).
    """
    try:
        strategy = TRANSFECTION_STRATEGIES[type(setup)]
    except KeyError:
        raise InvalidConfiguration(f"Unknown screen setup: {type(setup).__name__}") from None
    return strategy(setup, library, rng)
