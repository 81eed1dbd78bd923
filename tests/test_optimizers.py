from __future__ import annotations

import numpy as np
import pytest

from rbmvmc.config.schemas import OptimizerConfig
from rbmvmc.optim.optimizers import Adam, Sgd, build_optimizer
from rbmvmc.optim.schedules import diagonal_shift, geometric_decay


def test_sgd_step_descends() -> None:
    opt = Sgd(eta=0.1)
    gradient = np.array([1.0, -2.0 + 1.0j])
    np.testing.assert_allclose(opt.get_update(gradient), [-0.1, 0.2 - 0.1j])


def test_sgd_momentum_accumulates() -> None:
    opt = Sgd(eta=1.0, momentum=0.5)
    g = np.array([1.0])
    np.testing.assert_allclose(opt.get_update(g), [-1.0])
    np.testing.assert_allclose(opt.get_update(g), [-1.5])


def test_adam_first_step_has_size_eta() -> None:
    opt = Adam(eta=0.01)
    gradient = np.array([3.0, -0.5, 2.0j])

    step = opt.get_update(gradient)

    np.testing.assert_allclose(np.abs(step), 0.01, rtol=1.0e-6)
    np.testing.assert_allclose(step / np.abs(step), -gradient / np.abs(gradient), rtol=1.0e-12)


def test_build_optimizer_returns_fresh_state() -> None:
    assert isinstance(build_optimizer(OptimizerConfig(name="adam", eta=0.1)), Adam)
    sgd = build_optimizer(OptimizerConfig(name="sgd", eta=0.2, momentum=0.1))
    assert isinstance(sgd, Sgd)
    assert sgd.params() == {"name": "SGD", "eta": 0.2, "momentum": 0.1}


def test_invalid_optimizer_settings() -> None:
    with pytest.raises(ValueError):
        Sgd(eta=0.0)
    with pytest.raises(ValueError):
        Adam(beta1=1.0)


def test_diagonal_shift_decays_to_floor() -> None:
    assert diagonal_shift(0, 10.0, 0.9, 1.0e-3) == 10.0
    assert diagonal_shift(1, 10.0, 0.9, 1.0e-3) == pytest.approx(9.0)
    assert diagonal_shift(500, 10.0, 0.9, 1.0e-3) == 1.0e-3
    shifts = [diagonal_shift(k, 10.0, 0.9, 1.0e-3) for k in range(200)]
    assert all(a >= b for a, b in zip(shifts, shifts[1:]))
    assert min(shifts) > 0.0


def test_schedule_validation() -> None:
    with pytest.raises(ValueError):
        geometric_decay(-1, 1.0, 0.9)
    with pytest.raises(ValueError):
        diagonal_shift(0, 1.0, 0.9, 0.0)
