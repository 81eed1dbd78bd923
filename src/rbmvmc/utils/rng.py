from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass
class RngStreams:
    """Deterministic numpy random streams with explicitly derived children."""

    seed: int

    def __post_init__(self) -> None:
        if self.seed < 0:
            raise ValueError("seed must be non-negative")
        self._seed_seq = np.random.SeedSequence(self.seed)
        self._np_rng = np.random.default_rng(self._seed_seq.spawn(1)[0])

    @property
    def numpy(self) -> np.random.Generator:
        return self._np_rng

    def spawn(self, n: int) -> list[np.random.Generator]:
        """Independent generators, one per chain, derived from the root seed."""

        if n < 1:
            raise ValueError("n must be >= 1")
        return [np.random.default_rng(child) for child in self._seed_seq.spawn(n)]
