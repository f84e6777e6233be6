"""
Property-based tests for cell population operations using Hypothesis.

Invariants checked over random populations:
1. A growth round writes between n and 4n cells and loses no guide
2. Bottlenecks return exactly the requested number of cells, drawn from the input
3. Realized guide frequencies always sum to 1
"""

import numpy as np
from hypothesis import given, settings, strategies as st

from screen_sim.selection import MAX_OFFSPRING, bottleneck, expand_to_target, grow
from screen_sim.transfection import realized_frequencies


seed_value = st.integers(min_value=0, max_value=2**32 - 1)
population_size = st.integers(min_value=1, max_value=300)
phenotype_value = st.floats(min_value=-1.0, max_value=1.0, allow_nan=False)


@st.composite
def population(draw, max_guides=20):
    n = draw(population_size)
    num_guides = draw(st.integers(min_value=1, max_value=max_guides))
    cells = np.array(draw(st.lists(st.integers(0, num_guides - 1), min_size=n, max_size=n)))
    phenotypes = np.array(draw(st.lists(phenotype_value, min_size=n, max_size=n)))
    return cells, phenotypes, num_guides


class TestGrowRound:

    @given(pop=population(), seed=seed_value)
    @settings(max_examples=50, deadline=None)
    def test_size_bounds_and_guides_kept(self, pop, seed):
        cells, phenotypes, _ = pop
        n = len(cells)
        out_cells = np.empty(MAX_OFFSPRING * n, dtype=np.int64)
        out_phenotypes = np.empty(MAX_OFFSPRING * n)

        size = grow(cells, phenotypes, out_cells, out_phenotypes, np.random.default_rng(seed))

        assert n <= size <= MAX_OFFSPRING * n
        assert set(out_cells[:size]) == set(cells)

    @given(n=population_size, seed=seed_value)
    @settings(max_examples=25, deadline=None)
    def test_neutral_cells_double(self, n, seed):
        cells = np.arange(n)
        out_cells = np.empty(MAX_OFFSPRING * n, dtype=np.int64)
        out_phenotypes = np.empty(MAX_OFFSPRING * n)
        size = grow(cells, np.zeros(n), out_cells, out_phenotypes, np.random.default_rng(seed))
        assert size == 2 * n
        assert np.array_equal(np.bincount(out_cells[:size]), np.full(n, 2))

    @given(n=population_size, target=st.integers(1, 5000), seed=seed_value)
    @settings(max_examples=25, deadline=None)
    def test_non_negative_phenotypes_reach_target(self, n, target, seed):
        rng = np.random.default_rng(seed)
        phenotypes = rng.random(n)
        cells, _, rounds = expand_to_target(np.arange(n), phenotypes, target, rng)
        assert len(cells) >= target
        assert rounds >= 0


class TestBottleneck:

    @given(pop=population(), fraction=st.floats(0.0, 1.0), seed=seed_value)
    @settings(max_examples=50, deadline=None)
    def test_exact_size_and_subset(self, pop, fraction, seed):
        cells, phenotypes, num_guides = pop
        size = int(fraction * len(cells))

        picked_cells, picked_phenotypes = bottleneck(cells, phenotypes, size, np.random.default_rng(seed))

        assert len(picked_cells) == size
        assert len(picked_phenotypes) == size
        before = np.bincount(cells, minlength=num_guides)
        after = np.bincount(picked_cells, minlength=num_guides)
        assert np.all(after <= before)


@given(pop=population())
@settings(max_examples=50, deadline=None)
def test_realized_frequencies_sum_to_one(pop):
    cells, _, num_guides = pop
    freqs = realized_frequencies(cells, num_guides)
    assert len(freqs) == num_guides
    assert np.isclose(freqs.sum(), 1.0)
