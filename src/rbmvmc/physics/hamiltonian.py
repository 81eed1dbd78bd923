from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

import numpy as np

from rbmvmc.types import IntArray, Scalar, ScalarArray, SpinArray

if TYPE_CHECKING:
    from rbmvmc.nqs.rbm import RbmMachine


class Hamiltonian(Protocol):
    """Sparse Hamiltonian in the sigma^z basis.

    ``connected_states`` must be deterministic and include ``sigma`` itself
    whenever the diagonal element is non-zero.
    """

    @property
    def n_sites(self) -> int:
        ...

    def connected_states(self, sigma: SpinArray) -> list[tuple[SpinArray, float]]:
        """All ``(sigma', H[sigma, sigma'])`` with non-zero matrix element."""


def chain_bonds(n_sites: int, periodic: bool = True) -> IntArray:
    """Nearest-neighbour bonds of a 1D chain."""

    if n_sites < 2:
        raise ValueError("n_sites must be >= 2")
    n_bonds = n_sites if periodic and n_sites > 2 else n_sites - 1
    return np.asarray([(i, (i + 1) % n_sites) for i in range(n_bonds)], dtype=np.int64)


def dense_matrix(hamiltonian: Hamiltonian, basis: np.ndarray) -> np.ndarray:
    """Materialize ``H`` on an enumerated basis (rows follow ``basis`` order)."""

    lookup = {tuple(int(s) for s in sigma): idx for idx, sigma in enumerate(basis)}
    matrix = np.zeros((basis.shape[0], basis.shape[0]), dtype=np.float64)
    for row, sigma in enumerate(basis):
        for connected, element in hamiltonian.connected_states(sigma):
            col = lookup.get(tuple(int(s) for s in connected))
            if col is None:
                raise ValueError("Hamiltonian connects states outside the supplied basis")
            matrix[row, col] += element
    return matrix


def local_energy(
    machine: RbmMachine,
    sigma: SpinArray,
    theta: ScalarArray,
    hamiltonian: Hamiltonian,
) -> Scalar:
    """``E_loc(sigma) = sum_sigma' H[sigma, sigma'] psi(sigma') / psi(sigma)``.

    Fields for the connected configurations are recomputed from the machine;
    the cached ``theta`` belongs to ``sigma`` only.
    """

    log_psi = machine.log_amplitude(sigma, theta)
    total: complex = 0.0j
    for connected, element in hamiltonian.connected_states(sigma):
        if np.array_equal(connected, sigma):
            total += element
            continue
        log_psi_connected = machine.log_amplitude(connected, machine.calc_theta(connected))
        total += element * np.exp(log_psi_connected - log_psi)

    if machine.is_complex:
        return complex(total)
    return float(np.real(total))
