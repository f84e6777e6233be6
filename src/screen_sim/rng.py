"""
Run-level RNG streams.

Each simulation run owns a set of named numpy Generators derived from a single
run seed. Stages never share a stream, so adding draws to one stage (e.g. more
sequencing depth) does not perturb the cells produced by another.

np.random.<fn> global state is never used.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Dict

import numpy as np


STREAM_NAMES = ("library", "transfection", "selection", "sequencing")


def stable_u32(s: str) -> int:
    """
    Stable deterministic hash for RNG seeding (32-bit).

    Unlike Python's hash(), this is NOT salted per process, so it gives
    consistent seeds across runs and machines.
    """
    return int.from_bytes(hashlib.blake2s(s.encode(), digest_size=4).digest(), "little")


def stable_u64(s: str) -> int:
    """Stable deterministic hash for RNG seeding (64-bit)."""
    return int.from_bytes(hashlib.blake2s(s.encode(), digest_size=8).digest(), "little")


def substream_seed(run_seed: int, name: str) -> int:
    return stable_u64(f"{run_seed}:{name}")


@dataclass
class RunStreams:
    """
    Named, independent RNG substreams for one simulation run.

    Usage:
        streams = RunStreams(seed=42)
        library = construct_library(design, streams.library)
        result = transfect(setup, library, streams.transfection)
    """
    seed: int
    _streams: Dict[str, np.random.Generator] = field(default_factory=dict, repr=False)

    def __post_init__(self):
        for name in STREAM_NAMES:
            self._streams[name] = np.random.default_rng(substream_seed(self.seed, name))

    def stream(self, name: str) -> np.random.Generator:
        if name not in self._streams:
            self._streams[name] = np.random.default_rng(substream_seed(self.seed, name))
        return self._streams[name]

    @property
    def library(self) -> np.random.Generator:
        return self._streams["library"]

    @property
    def transfection(self) -> np.random.Generator:
        return self._streams["transfection"]

    @property
    def selection(self) -> np.random.Generator:
        return self._streams["selection"]

    @property
    def sequencing(self) -> np.random.Generator:
        return self._streams["sequencing"]
