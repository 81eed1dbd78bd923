from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.nqs.state import RbmState, RbmStateRef
from rbmvmc.types import ScalarArray, SpinArray, SpinBatch


@dataclass(frozen=True)
class SampleBatch:
    """Recorded ``(sigma, theta)`` pairs from one sampling call."""

    sigmas: SpinBatch
    thetas: ScalarArray

    def __post_init__(self) -> None:
        if self.sigmas.ndim != 2 or self.thetas.ndim != 2:
            raise ValueError("sigmas and thetas must be rank-2")
        if self.sigmas.shape[0] != self.thetas.shape[0]:
            raise ValueError("sample axis mismatch between sigmas and thetas")

    def __len__(self) -> int:
        return int(self.sigmas.shape[0])

    def __iter__(self) -> Iterator[tuple[SpinArray, ScalarArray]]:
        for i in range(len(self)):
            yield self.sigmas[i], self.thetas[i]

    def refs(self, machine: RbmMachine) -> list[RbmStateRef]:
        return [RbmStateRef(machine, sigma, theta) for sigma, theta in self]

    @classmethod
    def from_pairs(
        cls,
        pairs: list[tuple[SpinArray, ScalarArray]],
        n_visible: int,
        n_hidden: int,
        dtype: np.dtype,
    ) -> SampleBatch:
        if not pairs:
            return cls(
                sigmas=np.zeros((0, n_visible), dtype=np.int8),
                thetas=np.zeros((0, n_hidden), dtype=dtype),
            )
        sigmas = np.stack([p[0] for p in pairs], axis=0).astype(np.int8)
        thetas = np.stack([p[1] for p in pairs], axis=0).astype(dtype)
        return cls(sigmas=sigmas, thetas=thetas)


class Sweeper(Protocol):
    """Move proposal strategy used by Metropolis chains.

    The proposal must be symmetric and its move set must connect every
    configuration of the sector being sampled; neither is checked at runtime.
    """

    def propose_move(self, state: RbmState, rng: np.random.Generator) -> tuple[int, ...]:
        """Return the sites to flip, or an empty tuple for a no-op move."""


class ChainSampler(Protocol):
    """Sampler API consumed by the VMC loops."""

    @property
    def machine(self) -> RbmMachine:
        ...

    @property
    def acceptance_rate(self) -> float:
        ...

    def sample(self, n_sweeps: int, n_therm: int) -> SampleBatch:
        """Burn in for ``n_therm`` sweeps, then record one pair per sweep."""

    def refresh(self) -> None:
        """Rebuild cached fields after the parameters changed."""

    def randomize_sigma(self, n_up: int | None = None) -> None:
        """Restart the chain(s) from a random configuration."""

    def reset_acceptance_stats(self) -> None:
        ...
