from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from rbmvmc.physics.hamiltonian import chain_bonds
from rbmvmc.types import IntArray, SpinArray


@dataclass(frozen=True)
class XxzChain:
    """``H = sum_<ij> J (X_i X_j + Y_i Y_j) + delta Z_i Z_j`` with Pauli matrices.

    With ``sign_rule`` the hopping element changes sign (Marshall rotation on
    a bipartite chain), which makes the ground state positive.
    """

    n_sites: int
    J: float = 1.0
    delta: float = 1.0
    periodic: bool = True
    sign_rule: bool = False
    bonds: IntArray = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "bonds", chain_bonds(self.n_sites, periodic=self.periodic))

    def diagonal(self, sigma: SpinArray) -> float:
        products = sigma[self.bonds[:, 0]] * sigma[self.bonds[:, 1]]
        return float(self.delta * np.sum(products, dtype=np.float64))

    def connected_states(self, sigma: SpinArray) -> list[tuple[SpinArray, float]]:
        spins = np.asarray(sigma, dtype=np.int8)
        out: list[tuple[SpinArray, float]] = []

        diag = self.diagonal(spins)
        if diag != 0.0:
            out.append((spins.copy(), diag))

        hop = -2.0 * self.J if self.sign_rule else 2.0 * self.J
        for i, j in self.bonds:
            if spins[i] != spins[j]:
                flipped = spins.copy()
                flipped[i] = -flipped[i]
                flipped[j] = -flipped[j]
                out.append((flipped, hop))
        return out

    def params(self) -> dict[str, object]:
        return {
            "name": "XXZ",
            "n_sites": self.n_sites,
            "J": self.J,
            "delta": self.delta,
            "periodic": self.periodic,
            "sign_rule": self.sign_rule,
        }
