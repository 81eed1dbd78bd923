from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from rbmvmc.physics.hamiltonian import chain_bonds
from rbmvmc.types import IntArray, SpinArray


@dataclass(frozen=True)
class SquareLattice:
    """Periodic LxL square lattice in row-major index order."""

    L: int

    def __post_init__(self) -> None:
        if self.L < 2:
            raise ValueError("L must be >= 2 for periodic lattices")

    @property
    def n_spins(self) -> int:
        return self.L * self.L

    def index(self, row: int, col: int) -> int:
        return (row % self.L) * self.L + (col % self.L)


def build_nearest_neighbor_bonds(L: int) -> IntArray:
    """Build unique nearest-neighbor bonds for periodic square lattice.

    Returns an array of shape ``(2 * L * L, 2)`` containing right and down
    neighbors for each site, which is sufficient to cover each undirected bond
    exactly once.
    """

    lattice = SquareLattice(L)
    bonds: list[tuple[int, int]] = []
    for r in range(L):
        for c in range(L):
            i = lattice.index(r, c)
            bonds.append((i, lattice.index(r, c + 1)))
            bonds.append((i, lattice.index(r + 1, c)))
    return np.asarray(bonds, dtype=np.int64)


def diagonal_energy(spins: SpinArray, bonds: IntArray, J: float) -> float:
    """Compute ``-J * sum_<i,j> s_i s_j`` for one configuration."""

    if spins.ndim != 1:
        raise ValueError(f"spins must be rank-1, received shape {spins.shape}")

    pair_products = spins[bonds[:, 0]] * spins[bonds[:, 1]]
    return float(-J * np.sum(pair_products, dtype=np.float64))


def flip_spin(spins: SpinArray, index: int) -> SpinArray:
    """Return a copy of ``spins`` with one spin flipped."""

    if index < 0 or index >= spins.shape[0]:
        raise ValueError(f"index out of bounds: {index}")
    flipped = np.array(spins, copy=True)
    flipped[index] = np.int8(-flipped[index])
    return flipped


@dataclass(frozen=True)
class TfimHamiltonian:
    """``H = -J sum_<ij> Z_i Z_j - gamma_x sum_i X_i`` on an arbitrary bond list."""

    n_sites: int
    bonds: IntArray
    J: float = 1.0
    gamma_x: float = 1.0

    def __post_init__(self) -> None:
        if self.bonds.ndim != 2 or self.bonds.shape[1] != 2:
            raise ValueError("bonds must have shape (n_bonds, 2)")
        if np.any(self.bonds < 0) or np.any(self.bonds >= self.n_sites):
            raise ValueError("bond endpoints must lie in [0, n_sites)")

    @classmethod
    def chain(cls, n_sites: int, J: float = 1.0, gamma_x: float = 1.0, periodic: bool = True) -> TfimHamiltonian:
        return cls(n_sites=n_sites, bonds=chain_bonds(n_sites, periodic=periodic), J=J, gamma_x=gamma_x)

    @classmethod
    def square(cls, L: int, J: float = 1.0, gamma_x: float = 1.0) -> TfimHamiltonian:
        return cls(n_sites=L * L, bonds=build_nearest_neighbor_bonds(L), J=J, gamma_x=gamma_x)

    def connected_states(self, sigma: SpinArray) -> list[tuple[SpinArray, float]]:
        spins = np.asarray(sigma, dtype=np.int8)
        out: list[tuple[SpinArray, float]] = []

        diag = diagonal_energy(spins=spins, bonds=self.bonds, J=self.J)
        if diag != 0.0:
            out.append((spins.copy(), diag))
        if self.gamma_x != 0.0:
            for i in range(self.n_sites):
                out.append((flip_spin(spins, i), -self.gamma_x))
        return out

    def params(self) -> dict[str, object]:
        return {"name": "TFIM", "n_sites": self.n_sites, "J": self.J, "gamma_x": self.gamma_x}
