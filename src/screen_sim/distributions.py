"""
Sampling helpers.

Continuous distributions are scipy.stats frozen distributions. The few shapes
scipy does not provide directly (point mass, finite categorical over arbitrary
values, weighted mixture) are small wrappers around numpy Generator calls.
All of them are drawn through `sample(dist, rng, n)` so callers never touch
global RNG state.
"""

from typing import Optional, Sequence

import numpy as np
from scipy import stats

from .exceptions import InvalidConfiguration


class Delta:
    """Point mass at `value`."""

    def __init__(self, value: float = 0.0):
        self.value = float(value)

    def sample(self, rng: np.random.Generator, n: Optional[int] = None):
        if n is None:
            return self.value
        return np.full(n, self.value, dtype=float)

    def __repr__(self) -> str:
        return f"Delta({self.value})"


class Categorical:
    """
    Finite distribution over `values` (default 0..k-1) with probabilities
    proportional to `weights`.
    """

    def __init__(self, weights: Sequence[float], values: Optional[Sequence] = None):
        weights = np.asarray(weights, dtype=float)
        if weights.ndim != 1 or len(weights) == 0:
            raise InvalidConfiguration("Categorical needs a non-empty 1-D weight vector")
        if np.any(weights < 0) or not np.isfinite(weights).all():
            raise InvalidConfiguration("Categorical weights must be finite and non-negative")
        total = weights.sum()
        if total <= 0:
            raise InvalidConfiguration("Categorical weights sum to zero")
        self.p = weights / total
        if values is None:
            self.values = np.arange(len(self.p))
        else:
            if len(values) != len(self.p):
                raise InvalidConfiguration(
                    f"{len(values)} values for {len(self.p)} weights"
                )
            self.values = np.asarray(values)

    def __len__(self) -> int:
        return len(self.p)

    def sample(self, rng: np.random.Generator, n: Optional[int] = None):
        return rng.choice(self.values, size=n, p=self.p)

    def pmf(self, value) -> float:
        mask = self.values == value
        return float(self.p[mask].sum())

    @property
    def min(self):
        return self.values[self.p > 0].min()

    @property
    def max(self):
        return self.values[self.p > 0].max()

    def __repr__(self) -> str:
        return f"Categorical(p={np.round(self.p, 4).tolist()}, values={self.values.tolist()})"


class Mixture:
    """Weighted mixture of component distributions."""

    def __init__(self, components: Sequence, weights: Sequence[float]):
        if len(components) != len(weights):
            raise InvalidConfiguration("Mixture needs one weight per component")
        self.components = list(components)
        self.selector = Categorical(weights)

    def sample(self, rng: np.random.Generator, n: Optional[int] = None):
        if n is None:
            return sample(self.components[int(self.selector.sample(rng))], rng)
        which = self.selector.sample(rng, n)
        out = np.empty(n, dtype=float)
        for idx, component in enumerate(self.components):
            mask = which == idx
            count = int(mask.sum())
            if count:
                out[mask] = sample(component, rng, count)
        return out


def truncated_normal(mean: float, std: float, lower: float, upper: float):
    """Normal(mean, std) truncated to [lower, upper] as a frozen scipy distribution."""
    if std <= 0:
        raise InvalidConfiguration(f"std must be positive, got {std}")
    if lower >= upper:
        raise InvalidConfiguration(f"empty truncation interval [{lower}, {upper}]")
    a, b = (lower - mean) / std, (upper - mean) / std
    return stats.truncnorm(a, b, loc=mean, scale=std)


def sample(dist, rng: np.random.Generator, n: Optional[int] = None):
    """
    Draw from `dist` using `rng`.

    Returns a scalar when `n` is None, otherwise an array of length `n`.
    """
    if hasattr(dist, "sample"):
        return dist.sample(rng, n)
    if hasattr(dist, "rvs"):
        return dist.rvs(size=n, random_state=rng)
    raise TypeError(f"Cannot sample from {dist!r}")


def from_spec(spec):
    """
    Build a distribution from a config entry.

    Accepted forms:
        0.0                                       -> Delta(0.0)
        {"delta": 0.0}
        {"truncated_normal": [mean, std, lower, upper]}
        {"categorical": {"weights": [...], "values": [...]}}
    """
    if isinstance(spec, (int, float)):
        return Delta(spec)
    if not isinstance(spec, dict) or len(spec) != 1:
        raise InvalidConfiguration(f"Unrecognized distribution spec: {spec!r}")
    kind, args = next(iter(spec.items()))
    if kind == "delta":
        return Delta(args)
    if kind == "truncated_normal":
        return truncated_normal(*args)
    if kind == "categorical":
        return Categorical(args["weights"], args.get("values"))
    raise InvalidConfiguration(f"Unknown distribution type: {kind}")
