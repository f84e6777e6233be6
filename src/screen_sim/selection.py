"""
Selection: growth, bottlenecks and FACS sorting.

Growth model
------------
One call to `grow` is one round of clonal expansion. For every cell a
uniform u ~ U(0, 1) is drawn:

    u >= |phenotype|          divides normally       -> 2 daughters
    u <  |phenotype|, ϕ < 0   arrests (no division)  -> 1 cell
    u <  |phenotype|, ϕ > 0   divides twice          -> 4 daughters

Daughters inherit the guide and phenotype of their parent, so guide identity
is preserved per lineage while high-phenotype lineages become
over-represented round after round. A population never shrinks; a round in
which every cell arrests is a stall and raises GrowthStalled.
"""

import logging
from typing import Dict, Tuple

import numpy as np

from .exceptions import GrowthStalled, InvalidConfiguration
from .setups import FacsScreen, GrowthScreen

logger = logging.getLogger(__name__)

# Largest number of daughters a single cell can produce in one round
MAX_OFFSPRING = 4


def grow(cells: np.ndarray, phenotypes: np.ndarray,
         out_cells: np.ndarray, out_phenotypes: np.ndarray,
         rng: np.random.Generator) -> int:
    """
    Run one growth round, writing daughters into the output buffers.

    Returns:
        Number of cells written to `out_cells[:k]` / `out_phenotypes[:k]`
    """
    n = len(cells)
    if len(out_cells) < MAX_OFFSPRING * n or len(out_phenotypes) < MAX_OFFSPRING * n:
        raise InvalidConfiguration(
            f"Output buffers hold {min(len(out_cells), len(out_phenotypes))} cells, "
            f"need {MAX_OFFSPRING * n}"
        )

    deviates = rng.random(n) < np.abs(phenotypes)
    offspring = np.full(n, 2, dtype=np.int64)
    offspring[deviates & (phenotypes < 0)] = 1
    offspring[deviates & (phenotypes > 0)] = MAX_OFFSPRING

    total = int(offspring.sum())
    out_cells[:total] = np.repeat(cells, offspring)
    out_phenotypes[:total] = np.repeat(phenotypes, offspring)
    return total


def expand_to_target(cells: np.ndarray, phenotypes: np.ndarray, target: int,
                     rng: np.random.Generator, min_rounds: int = 0) -> Tuple[np.ndarray, np.ndarray, int]:
    """
    Grow a population until it holds at least `target` cells.

    Args:
        cells: Guide index per cell
        phenotypes: Phenotype per cell
        target: Minimum final population size
        rng: Generator for growth draws
        min_rounds: Run at least this many rounds even if already at target

    Returns:
        (cells, phenotypes, rounds)

    Raises:
        GrowthStalled: if the population is empty or a round does not grow it
    """
    if len(cells) == 0:
        raise GrowthStalled(round=0, size=0, target=target)

    capacity = MAX_OFFSPRING * max(target, len(cells))
    out_cells = np.empty(capacity, dtype=np.int64)
    out_phenotypes = np.empty(capacity, dtype=float)

    cells, phenotypes = np.array(cells, copy=True), np.array(phenotypes, copy=True)
    rounds = 0
    while len(cells) < target or rounds < min_rounds:
        size = grow(cells, phenotypes, out_cells, out_phenotypes, rng)
        rounds += 1
        if size <= len(cells):
            raise GrowthStalled(round=rounds, size=size, target=target)
        cells = out_cells[:size].copy()
        phenotypes = out_phenotypes[:size].copy()
        logger.debug("growth round %d: %d cells (target %d)", rounds, size, target)

    return cells, phenotypes, rounds


def bottleneck(cells: np.ndarray, phenotypes: np.ndarray, size: int,
               rng: np.random.Generator) -> Tuple[np.ndarray, np.ndarray]:
    """Uniformly sample `size` cells without replacement."""
    if size < 0 or size > len(cells):
        raise InvalidConfiguration(f"Cannot bottleneck {len(cells)} cells to {size}")
    picked = rng.choice(len(cells), size=size, replace=False)
    return cells[picked], phenotypes[picked]


def facs_sort(setup, cells: np.ndarray, phenotypes: np.ndarray,
              rng: np.random.Generator) -> Dict[str, np.ndarray]:
    """
    Sort cells into bins by observed phenotype.

    The sorter sees phenotype + Normal(0, sigma). Each bin takes the cells
    between its quantile bounds of the sorted population.
    """
    n = len(cells)
    observed = phenotypes + rng.normal(0.0, setup.sigma, size=n)
    sorted_cells = cells[np.argsort(observed, kind="stable")]

    bins = {}
    for name, (lo, hi) in setup.bin_info.items():
        start, stop = int(round(lo * n)), int(round(hi * n))
        bins[name] = sorted_cells[start:stop].copy()
        logger.debug("FACS bin %s: %d cells", name, stop - start)
    return bins


def growth_select(setup, cells: np.ndarray, phenotypes: np.ndarray, num_guides: int,
                  rng: np.random.Generator) -> Dict[str, np.ndarray]:
    """
    Passage a growth screen through `setup.num_bottlenecks` rounds.

    Each passage grows the population (at least one round) past twice the
    bottleneck size, then samples it back down. `bin1` is the starting
    population, `bin2` the population after the last passage.
    """
    target = setup.bottleneck_representation * num_guides
    bins = {"bin1": np.array(cells, copy=True)}
    total_rounds = 0
    for _ in range(setup.num_bottlenecks):
        cells, phenotypes, rounds = expand_to_target(cells, phenotypes, 2 * target, rng, min_rounds=1)
        total_rounds += rounds
        cells, phenotypes = bottleneck(cells, phenotypes, min(target, len(cells)), rng)
    logger.info("Growth selection: %d bottlenecks, %d growth rounds",
                setup.num_bottlenecks, total_rounds)
    bins["bin2"] = cells
    return bins


def select(setup, cells: np.ndarray, phenotypes: np.ndarray, num_guides: int,
           rng: np.random.Generator) -> Dict[str, np.ndarray]:
    """Apply the screen's selection, returning guide indices per bin."""
    if isinstance(setup, FacsScreen):
        return facs_sort(setup, cells, phenotypes, rng)
    if isinstance(setup, GrowthScreen):
        return growth_select(setup, cells, phenotypes, num_guides, rng)
    raise InvalidConfiguration(f"Unknown screen setup: {type(setup).__name__}")
