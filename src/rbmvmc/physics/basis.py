from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
from typing import Protocol

import numpy as np

from rbmvmc.nqs.wavefunction import index_to_sigma
from rbmvmc.types import SpinBatch


class Basis(Protocol):
    """Enumerates the configurations of a (symmetry-restricted) Hilbert space."""

    @property
    def n_sites(self) -> int:
        ...

    def enumerate(self) -> SpinBatch:
        """Configurations as rows of shape ``(n_states, n_sites)``."""


@dataclass(frozen=True)
class FullBasis:
    """All ``2**n_sites`` configurations in bit order."""

    n_sites: int

    def __post_init__(self) -> None:
        if self.n_sites < 1:
            raise ValueError("n_sites must be >= 1")

    def __len__(self) -> int:
        return 1 << self.n_sites

    def enumerate(self) -> SpinBatch:
        return np.stack([index_to_sigma(self.n_sites, i) for i in range(len(self))], axis=0)


@dataclass(frozen=True)
class FixedMagnetizationBasis:
    """Configurations with exactly ``n_up`` up spins."""

    n_sites: int
    n_up: int

    def __post_init__(self) -> None:
        if self.n_up < 0 or self.n_up > self.n_sites:
            raise ValueError(f"n_up must lie in [0, {self.n_sites}]")

    def __len__(self) -> int:
        return sum(1 for _ in combinations(range(self.n_sites), self.n_up))

    def enumerate(self) -> SpinBatch:
        rows = []
        for ups in combinations(range(self.n_sites), self.n_up):
            sigma = -np.ones(self.n_sites, dtype=np.int8)
            sigma[list(ups)] = 1
            rows.append(sigma)
        return np.stack(rows, axis=0)
