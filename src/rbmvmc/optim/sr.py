from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.physics.hamiltonian import Hamiltonian, local_energy
from rbmvmc.sampling.backend import SampleBatch
from rbmvmc.types import FloatArray, Scalar, ScalarArray, SpinArray
from rbmvmc.utils.parallel import parallel_map


@dataclass(frozen=True)
class SrStatistics:
    """Weighted SR averages in the flat-parameter basis.

    ``force`` is ``<E O*> - <E><O*>``; the covariance ``S`` is only ever used
    through ``build_sr_matvec``.
    """

    operators: ScalarArray
    local_energies: ScalarArray
    weights: FloatArray
    mean_operators: ScalarArray
    mean_energy: Scalar
    force: ScalarArray

    @property
    def energy(self) -> float:
        return float(np.real(self.mean_energy))

    @property
    def energy_variance(self) -> float:
        deviation = np.abs(self.local_energies - self.mean_energy) ** 2
        return float(np.dot(self.weights, deviation))


def normalized_weights(n_samples: int, weights: FloatArray | None = None) -> FloatArray:
    """Uniform ``1/n`` weights, or the supplied ones rescaled to sum to one."""

    if n_samples < 1:
        raise ValueError("need at least one sample")
    if weights is None:
        return np.full(n_samples, 1.0 / n_samples, dtype=np.float64)

    w = np.asarray(weights, dtype=np.float64)
    if w.shape != (n_samples,):
        raise ValueError(f"weights shape mismatch: expected {(n_samples,)}, received {w.shape}")
    if np.any(w < 0.0):
        raise ValueError("weights must be non-negative")
    total = float(np.sum(w))
    if total <= 0.0:
        raise ValueError("weights must not all vanish")
    return w / total


def compute_sr_statistics(
    operators: ScalarArray,
    local_energies: ScalarArray,
    weights: FloatArray | None = None,
) -> SrStatistics:
    """Sample means ``<O>``, ``<E_loc>`` and the force ``<E O*> - <E><O*>``."""

    if operators.ndim != 2:
        raise ValueError("operators must have shape (n_samples, n_params)")
    if local_energies.ndim != 1:
        raise ValueError("local_energies must be rank-1")
    if operators.shape[0] != local_energies.shape[0]:
        raise ValueError("sample axis mismatch between operators and local_energies")

    w = normalized_weights(operators.shape[0], weights)

    mean_o = w @ operators
    mean_energy = np.dot(w, local_energies)
    cross = (w * local_energies) @ np.conj(operators)
    force = cross - mean_energy * np.conj(mean_o)

    return SrStatistics(
        operators=operators,
        local_energies=local_energies,
        weights=w,
        mean_operators=mean_o,
        mean_energy=mean_energy.item(),
        force=force,
    )


def build_sr_matvec(
    stats: SrStatistics,
    diagonal_shift: float,
) -> Callable[[ScalarArray], ScalarArray]:
    """Matrix-free ``(S + lambda I) x`` with ``S x = <O* (O.x)> - <O*> (<O>.x)``."""

    if diagonal_shift < 0.0:
        raise ValueError("diagonal_shift must be non-negative")

    operators = stats.operators
    weights = stats.weights
    mean_o = stats.mean_operators
    conj_operators = np.conj(operators)
    conj_mean = np.conj(mean_o)

    def matvec(vector: ScalarArray) -> ScalarArray:
        if vector.ndim != 1:
            raise ValueError("vector must be rank-1")
        projected = operators @ vector
        cov_action = (weights * projected) @ conj_operators - conj_mean * np.dot(mean_o, vector)
        return cov_action + diagonal_shift * vector

    return matvec


def explicit_sr_matrix(stats: SrStatistics) -> ScalarArray:
    """Materialize ``S`` for tests/debugging only."""

    weighted = stats.weights[:, None] * stats.operators
    return np.conj(stats.operators).T @ weighted - np.outer(
        np.conj(stats.mean_operators), stats.mean_operators
    )


class SrMatFree:
    """SR quantities from a sample batch, with ``S`` exposed only as an operator."""

    def __init__(self, machine: RbmMachine, n_workers: int = 1) -> None:
        self._machine = machine
        self._n_workers = n_workers
        self._stats: SrStatistics | None = None
        self.shift = 0.0

    @property
    def dim(self) -> int:
        return self._machine.dim

    @property
    def statistics(self) -> SrStatistics:
        if self._stats is None:
            raise RuntimeError("call construct_from_samples first")
        return self._stats

    @property
    def energy(self) -> float:
        return self.statistics.energy

    @property
    def force(self) -> ScalarArray:
        return self.statistics.force

    def construct_from_samples(
        self,
        samples: SampleBatch,
        hamiltonian: Hamiltonian,
        weights: FloatArray | None = None,
    ) -> SrStatistics:
        """Per-sample local energies and log-derivatives, then their averages."""

        machine = self._machine

        def per_sample(pair: tuple[SpinArray, ScalarArray]) -> tuple[Scalar, ScalarArray]:
            sigma, theta = pair
            return (
                local_energy(machine, sigma, theta, hamiltonian),
                machine.log_derivative(sigma, theta),
            )

        with machine.read_only():
            rows = parallel_map(per_sample, list(samples), n_workers=self._n_workers)

        energies = np.asarray([row[0] for row in rows], dtype=machine.dtype)
        operators = np.stack([row[1] for row in rows], axis=0)
        self._stats = compute_sr_statistics(operators, energies, weights=weights)
        return self._stats

    def set_shift(self, shift: float) -> None:
        if shift < 0.0:
            raise ValueError("shift must be non-negative")
        self.shift = shift

    def apply(self, vector: ScalarArray) -> ScalarArray:
        """``(S + shift I) x`` without forming ``S``."""

        if vector.shape != (self.dim,):
            raise ValueError(f"vector shape mismatch: expected {(self.dim,)}, received {vector.shape}")
        return build_sr_matvec(self.statistics, self.shift)(vector)

    def matvec(self) -> Callable[[ScalarArray], ScalarArray]:
        return build_sr_matvec(self.statistics, self.shift)
