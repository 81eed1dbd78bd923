from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.physics.hamiltonian import Hamiltonian, local_energy
from rbmvmc.sampling.backend import SampleBatch
from rbmvmc.types import FloatArray, ScalarArray


@dataclass(frozen=True)
class MeanWithError:
    """Mean estimate with standard error from block statistics."""

    mean: float
    stderr: float


def blocking_error_bars(values: FloatArray, n_bins: int) -> MeanWithError:
    """Blocking analysis for autocorrelated Markov-chain samples."""

    if values.ndim != 1:
        raise ValueError("values must be rank-1")
    if n_bins < 1:
        raise ValueError("n_bins must be >= 1")
    if values.shape[0] < n_bins:
        raise ValueError("need at least n_bins samples for blocking")

    trimmed = values[: (values.shape[0] // n_bins) * n_bins]
    block_size = trimmed.shape[0] // n_bins

    blocks = trimmed.reshape(n_bins, block_size)
    block_means = np.mean(blocks, axis=1, dtype=np.float64)

    mean = float(np.mean(block_means, dtype=np.float64))
    if n_bins == 1:
        return MeanWithError(mean=mean, stderr=0.0)

    stderr = float(np.std(block_means, ddof=1, dtype=np.float64) / np.sqrt(n_bins))
    return MeanWithError(mean=mean, stderr=stderr)


def energy_error(values: ScalarArray, requested_bins: int) -> MeanWithError:
    """Blocking estimate of the real part of the local energies."""

    real = np.asarray(np.real(values), dtype=np.float64)
    n_bins = min(requested_bins, real.shape[0])
    return blocking_error_bars(values=real, n_bins=max(1, n_bins))


def local_energies(machine: RbmMachine, samples: SampleBatch, hamiltonian: Hamiltonian) -> ScalarArray:
    """Local energy of every recorded sample."""

    with machine.read_only():
        values = [local_energy(machine, sigma, theta, hamiltonian) for sigma, theta in samples]
    return np.asarray(values, dtype=machine.dtype)
