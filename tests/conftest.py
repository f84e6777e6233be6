"""
Pytest configuration for screen_sim tests.
"""
import sys
import os

import numpy as np
import pandas as pd
import pytest

# Add src directory to Python path so tests can import screen_sim modules
src_path = os.path.abspath(os.path.join(os.path.dirname(__file__), "../src"))
sys.path.insert(0, src_path)

from screen_sim.distributions import Categorical
from screen_sim.library import Barcode, Behavior, Knockdown, Library, ScreenClass


# ==============================================================================
# RNG Fixtures
# ==============================================================================

@pytest.fixture
def rng():
    """Seeded generator; every test gets a fresh stream."""
    return np.random.default_rng(1234)


# ==============================================================================
# Library Fixtures
# ==============================================================================

def make_library(phenotypes, classes=None, genes=None, behavior=None, weights=None) -> Library:
    """Build a Library directly from per-guide phenotypes."""
    n = len(phenotypes)
    classes = classes or [ScreenClass.INACTIVE] * n
    genes = genes or list(range(n))
    barcodes = [
        Barcode(
            barcode_id=i,
            gene=genes[i],
            knockdown=1.0,
            theo_phenotype=float(phenotypes[i]),
            behavior=Behavior.LINEAR,
            screen_class=classes[i],
        )
        for i in range(n)
    ]
    return Library(
        barcodes=barcodes,
        behavior=behavior or Knockdown(),
        guide_freq_dist=Categorical(weights if weights is not None else np.ones(n)),
    )


@pytest.fixture
def library_factory():
    return make_library


@pytest.fixture
def ten_guide_library():
    """10 guides: gene 0 increasing, gene 1 decreasing (4 each), 2 negative controls."""
    classes = (
        [ScreenClass.INCREASING] * 4
        + [ScreenClass.DECREASING] * 4
        + [ScreenClass.NEGCONTROL] * 2
    )
    phenotypes = [0.5] * 4 + [-0.5] * 4 + [0.0] * 2
    genes = [0] * 4 + [1] * 4 + [2] * 2
    return make_library(phenotypes, classes=classes, genes=genes)


# ==============================================================================
# Count Table Fixtures
# ==============================================================================

def make_count_table(counts, classes, genes=None, behaviors=None) -> pd.DataFrame:
    n = len(counts)
    return pd.DataFrame({
        "barcodeid": np.arange(n),
        "gene": genes if genes is not None else list(range(n)),
        "behavior": behaviors if behaviors is not None else ["linear"] * n,
        "class": classes,
        "counts": counts,
    })


@pytest.fixture
def count_table_factory():
    return make_count_table


@pytest.fixture
def ten_guide_counts():
    """Raw counts for 10 guides over 2 genes (5 guides each) and no controls."""
    return {
        "genes": [0] * 5 + [1] * 5,
        "counts": [120, 80, 95, 130, 101, 60, 75, 88, 91, 70],
    }
