from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from rbmvmc.nqs.state import RbmState
from rbmvmc.types import IntArray


class LocalSweeper:
    """Single uniformly chosen spin flip."""

    def __init__(self, n_sites: int) -> None:
        if n_sites < 1:
            raise ValueError("n_sites must be >= 1")
        self.n_sites = n_sites

    def propose_move(self, state: RbmState, rng: np.random.Generator) -> tuple[int, ...]:
        return (int(rng.integers(0, self.n_sites)),)


class SwapSweeper:
    """Exchange a uniformly chosen up spin with a uniformly chosen down spin.

    Total magnetization is conserved. The number of (up, down) pairs is fixed
    within a sector, so the proposal is symmetric.
    """

    def __init__(self, n_sites: int) -> None:
        if n_sites < 2:
            raise ValueError("n_sites must be >= 2")
        self.n_sites = n_sites

    def propose_move(self, state: RbmState, rng: np.random.Generator) -> tuple[int, ...]:
        sigma = state.sigma
        up = np.flatnonzero(sigma > 0)
        down = np.flatnonzero(sigma < 0)
        if up.size == 0 or down.size == 0:
            return ()
        return (int(up[rng.integers(0, up.size)]), int(down[rng.integers(0, down.size)]))


class BondExchangeSweeper:
    """Exchange the two spins on a bond drawn from a fixed list.

    Bonds with parallel spins give a no-op move. This mirrors the hopping
    terms of an exchange Hamiltonian; the bond graph must be connected for
    the chain to be ergodic in a magnetization sector.
    """

    def __init__(self, bonds: Sequence[tuple[int, int]] | IntArray) -> None:
        arr = np.asarray(bonds, dtype=np.int64)
        if arr.ndim != 2 or arr.shape[1] != 2 or arr.shape[0] == 0:
            raise ValueError("bonds must have shape (n_bonds, 2)")
        if np.any(arr[:, 0] == arr[:, 1]):
            raise ValueError("bonds must connect distinct sites")
        self.bonds = arr

    @classmethod
    def chain(cls, n_sites: int, periodic: bool = True) -> BondExchangeSweeper:
        n_bonds = n_sites if periodic else n_sites - 1
        return cls([(i, (i + 1) % n_sites) for i in range(n_bonds)])

    def propose_move(self, state: RbmState, rng: np.random.Generator) -> tuple[int, ...]:
        i, j = self.bonds[rng.integers(0, self.bonds.shape[0])]
        if state.sigma_at(int(i)) == state.sigma_at(int(j)):
            return ()
        return (int(i), int(j))
