from __future__ import annotations

import numpy as np

from rbmvmc.types import FloatArray, IntArray, SpinArray, SpinBatch


def magnetization(spins: SpinArray) -> float:
    """Mean magnetization per spin for one configuration."""

    if spins.ndim != 1:
        raise ValueError("spins must be rank-1")
    return float(np.mean(spins, dtype=np.float64))


def magnetization_batch(spins: SpinBatch) -> FloatArray:
    """Batch magnetization per sample."""

    if spins.ndim != 2:
        raise ValueError("spins must be rank-2")
    return np.asarray(np.mean(spins, axis=1, dtype=np.float64), dtype=np.float64)


def nearest_neighbor_correlator(spins: SpinBatch, bonds: IntArray) -> float:
    """Average ``<s_i s_j>`` over a bond list and a batch of samples."""

    batch = np.atleast_2d(spins)
    pair_products = batch[:, bonds[:, 0]] * batch[:, bonds[:, 1]]
    return float(np.mean(pair_products, dtype=np.float64))
