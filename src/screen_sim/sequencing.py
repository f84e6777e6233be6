"""
Sequencing: turn binned cell populations into per-guide read counts.

Each bin is sequenced to `setup.seq_depth` reads per guide in the library.
Reads are a multinomial draw over the guide frequencies of the cells in the
bin. Sequencing errors and read mapping are not modeled.
"""

import logging
from typing import Dict

import numpy as np
import pandas as pd

from .exceptions import InvalidConfiguration
from .library import Library

logger = logging.getLogger(__name__)


def sequencing(setup, library: Library, bins: Dict[str, np.ndarray],
               rng: np.random.Generator) -> Dict[str, pd.DataFrame]:
    """
    Simulate sequencing of every bin.

    Args:
        setup: Screen setup (provides `seq_depth`)
        library: Library with realized initial frequencies
        bins: Bin name -> guide index of every cell in that bin
        rng: Generator for read sampling

    Returns:
        Bin name -> DataFrame with the library columns plus `counts`
    """
    num_guides = library.num_guides
    num_reads = setup.seq_depth * num_guides
    guides = library.to_frame()

    tables = {}
    for name, cells in bins.items():
        cells = np.asarray(cells, dtype=np.int64)
        if len(cells) == 0:
            raise InvalidConfiguration(f"Bin {name} contains no cells")
        if cells.min() < 0 or cells.max() >= num_guides:
            raise InvalidConfiguration(f"Bin {name} references guides outside the library")
        freqs = np.bincount(cells, minlength=num_guides) / len(cells)
        counts = rng.multinomial(num_reads, freqs)
        tables[name] = guides.assign(counts=counts)
        logger.debug("Sequenced bin %s: %d cells, %d reads", name, len(cells), num_reads)
    return tables
