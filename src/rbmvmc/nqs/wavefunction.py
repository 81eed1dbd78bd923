from __future__ import annotations

import numpy as np

from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.types import ScalarArray, SpinArray, SpinBatch
from rbmvmc.utils.parallel import parallel_map


def index_to_sigma(n_sites: int, index: int) -> SpinArray:
    """Bit ``i`` of ``index`` set means spin ``i`` is up (+1)."""

    bits = (index >> np.arange(n_sites)) & 1
    return (2 * bits - 1).astype(np.int8)


def sigma_to_index(sigma: SpinArray) -> int:
    bits = (np.asarray(sigma) > 0).astype(np.int64)
    return int(np.sum(bits << np.arange(bits.shape[0])))


def full_psi(
    machine: RbmMachine,
    configurations: SpinBatch | None = None,
    normalize: bool = True,
    n_workers: int = 1,
) -> ScalarArray:
    """Evaluate the amplitude on every basis configuration.

    Without ``configurations`` the full ``2**n_visible`` basis is used in
    ``index_to_sigma`` order. Each entry is independent, so evaluation goes
    through ``parallel_map``.
    """

    if configurations is None:
        n = machine.n_visible
        configurations = np.stack([index_to_sigma(n, i) for i in range(1 << n)], axis=0)

    def evaluate(sigma: SpinArray) -> complex | float:
        return machine.amplitude(sigma)

    with machine.read_only():
        values = parallel_map(evaluate, list(configurations), n_workers=n_workers)

    psi = np.asarray(values, dtype=machine.dtype)
    if normalize:
        psi = psi / np.linalg.norm(psi)
    return psi
