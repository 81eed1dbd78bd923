from __future__ import annotations

import numpy as np
import pytest

from rbmvmc.nqs.rbm import RbmMachine


def make_machine(
    n_visible: int,
    n_hidden: int,
    seed: int,
    dtype: type = np.float64,
    use_bias: bool = True,
    sigma: float = 0.3,
) -> RbmMachine:
    machine = RbmMachine(n_visible, n_hidden, use_bias=use_bias, dtype=dtype)
    machine.initialize_random(np.random.default_rng(seed), sigma=sigma)
    return machine


@pytest.fixture(params=[np.float64, np.complex128], ids=["real", "complex"])
def dtype(request: pytest.FixtureRequest) -> type:
    return request.param
