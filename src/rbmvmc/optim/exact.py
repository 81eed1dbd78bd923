from __future__ import annotations

import numpy as np

from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.optim.dense import solve_cholesky
from rbmvmc.physics.basis import Basis
from rbmvmc.physics.hamiltonian import Hamiltonian, local_energy
from rbmvmc.types import FloatArray, Scalar, ScalarArray, SpinArray, SpinBatch
from rbmvmc.utils.parallel import parallel_map


class SrMatExact:
    """SR quantities from exact ``|psi|^2``-weighted sums over an enumerated basis.

    ``corr_mat`` is materialized, so the regularized system is solved with a
    Cholesky factorisation. Intended for small systems and as ground truth for
    the sampled estimator.
    """

    def __init__(
        self,
        machine: RbmMachine,
        basis: Basis,
        hamiltonian: Hamiltonian,
        n_workers: int = 1,
    ) -> None:
        if basis.n_sites != machine.n_visible:
            raise ValueError(
                f"basis has {basis.n_sites} sites but the machine has {machine.n_visible} visible units"
            )
        self._machine = machine
        self._hamiltonian = hamiltonian
        self._n_workers = n_workers
        self._configurations: SpinBatch = basis.enumerate()

        self._probabilities: FloatArray | None = None
        self._local_energies: ScalarArray | None = None
        self._operators: ScalarArray | None = None
        self._energy: Scalar = 0.0
        self._force: ScalarArray | None = None
        self._corr_mat: ScalarArray | None = None

    @property
    def configurations(self) -> SpinBatch:
        return self._configurations

    def construct_exact(self) -> None:
        machine = self._machine
        hamiltonian = self._hamiltonian

        def per_state(sigma: SpinArray) -> tuple[Scalar, Scalar, ScalarArray]:
            theta = machine.calc_theta(sigma)
            return (
                machine.log_amplitude(sigma, theta),
                local_energy(machine, sigma, theta, hamiltonian),
                machine.log_derivative(sigma, theta),
            )

        with machine.read_only():
            rows = parallel_map(per_state, list(self._configurations), n_workers=self._n_workers)

        log_psi = np.asarray([row[0] for row in rows])
        log_prob = 2.0 * np.real(log_psi)
        prob = np.exp(log_prob - np.max(log_prob))
        prob /= np.sum(prob)

        energies = np.asarray([row[1] for row in rows], dtype=machine.dtype)
        operators = np.stack([row[2] for row in rows], axis=0)

        mean_o = prob @ operators
        energy = np.dot(prob, energies)
        weighted = prob[:, None] * operators

        self._probabilities = prob
        self._local_energies = energies
        self._operators = operators
        self._energy = energy.item()
        self._force = (prob * energies) @ np.conj(operators) - energy * np.conj(mean_o)
        self._corr_mat = np.conj(operators).T @ weighted - np.outer(np.conj(mean_o), mean_o)

    def _require_constructed(self) -> None:
        if self._corr_mat is None:
            raise RuntimeError("call construct_exact first")

    @property
    def probabilities(self) -> FloatArray:
        self._require_constructed()
        return self._probabilities  # type: ignore[return-value]

    @property
    def local_energies(self) -> ScalarArray:
        self._require_constructed()
        return self._local_energies  # type: ignore[return-value]

    @property
    def energy(self) -> float:
        self._require_constructed()
        return float(np.real(self._energy))

    @property
    def force(self) -> ScalarArray:
        self._require_constructed()
        return self._force  # type: ignore[return-value]

    @property
    def corr_mat(self) -> ScalarArray:
        self._require_constructed()
        return self._corr_mat  # type: ignore[return-value]

    def apply(self, vector: ScalarArray) -> ScalarArray:
        return self.corr_mat @ vector

    def solve(self, shift: float) -> ScalarArray:
        """Natural-gradient direction ``(S + shift I)^-1 F``."""

        return solve_cholesky(self.corr_mat, self.force, shift=shift)
