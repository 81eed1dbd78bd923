from __future__ import annotations

import numpy as np
import pytest

from conftest import make_machine
from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.nqs.state import RbmState, RbmStateRef


def _random_sigma(n: int, rng: np.random.Generator) -> np.ndarray:
    return rng.choice(np.array([-1, 1], dtype=np.int8), size=n)


def _flipped(sigma: np.ndarray, sites: list[int]) -> np.ndarray:
    out = sigma.copy()
    out[sites] = -out[sites]
    return out


def test_theta_stays_consistent_after_random_flips(dtype: type) -> None:
    machine = make_machine(8, 12, seed=20, dtype=dtype)
    rng = np.random.default_rng(21)
    state = RbmState(machine, _random_sigma(8, rng))

    for _ in range(200):
        n_flip = int(rng.integers(1, 4))
        sites = rng.choice(8, size=n_flip, replace=False)
        state.flip([int(s) for s in sites])
        np.testing.assert_allclose(
            state.theta, machine.calc_theta(state.sigma), rtol=1.0e-12, atol=1.0e-12
        )


@pytest.mark.parametrize("sites", [[3], [0, 5], [1, 2, 4, 6]])
def test_log_ratio_matches_full_amplitudes(dtype: type, sites: list[int]) -> None:
    machine = make_machine(7, 9, seed=22, dtype=dtype, sigma=0.5)
    rng = np.random.default_rng(23)
    sigma = _random_sigma(7, rng)
    state = RbmState(machine, sigma)

    expected = machine.amplitude(_flipped(sigma, sites)) / machine.amplitude(sigma)

    np.testing.assert_allclose(np.exp(state.log_ratio(sites)), expected, rtol=1.0e-10)
    np.testing.assert_allclose(state.ratio(*sites), expected, rtol=1.0e-10)
    # queries do not touch the state
    np.testing.assert_array_equal(state.sigma, sigma)


def test_log_ratio_with_no_sites_is_zero() -> None:
    machine = make_machine(3, 3, seed=24)
    state = RbmState(machine, np.array([1, 1, -1]))
    assert state.log_ratio() == 0.0


def test_flip_then_reverse_restores_state(dtype: type) -> None:
    machine = make_machine(6, 5, seed=25, dtype=dtype)
    state = RbmState(machine, np.array([1, -1, 1, 1, -1, -1]))
    sigma0, theta0 = state.data()

    state.flip(1, 4)
    state.flip(1, 4)

    np.testing.assert_array_equal(state.sigma, sigma0)
    np.testing.assert_allclose(state.theta, theta0, rtol=0.0, atol=1.0e-14)


def test_single_flip_on_four_site_machine() -> None:
    machine = RbmMachine(4, 4)
    w = np.array(
        [
            [0.1, -0.2, 0.3, 0.05],
            [-0.4, 0.2, 0.0, 0.1],
            [0.25, 0.15, -0.1, -0.3],
            [0.0, 0.35, 0.2, -0.05],
        ]
    )
    a = np.array([0.05, -0.1, 0.2, 0.0])
    b = np.array([0.1, 0.0, -0.2, 0.3])
    machine.set_w(w)
    machine.set_a(a)
    machine.set_b(b)

    sigma = np.array([1, -1, 1, -1], dtype=np.int8)
    state = RbmState(machine, sigma)
    theta = w @ sigma + b
    np.testing.assert_allclose(state.theta, theta, rtol=1.0e-14)

    expected_log = -2.0 * a[0] + np.sum(
        np.log(np.cosh(theta - 2.0 * w[:, 0])) - np.log(np.cosh(theta))
    )
    np.testing.assert_allclose(state.log_ratio(0), expected_log, rtol=1.0e-12)

    state.flip(0)
    np.testing.assert_array_equal(state.sigma, [-1, -1, 1, -1])
    np.testing.assert_allclose(state.theta, theta - 2.0 * w[:, 0], rtol=1.0e-14)


def test_duplicate_or_out_of_range_sites_rejected() -> None:
    machine = make_machine(4, 2, seed=26)
    state = RbmState(machine, np.array([1, 1, -1, -1]))
    with pytest.raises(ValueError):
        state.flip(2, 2)
    with pytest.raises(ValueError):
        state.log_ratio([0, 4])


def test_invalid_configuration_rejected() -> None:
    machine = make_machine(3, 2, seed=27)
    with pytest.raises(ValueError):
        RbmState(machine, np.array([1, 0, -1]))
    with pytest.raises(ValueError):
        RbmState(machine, np.array([1, -1]))


def test_refresh_after_parameter_update(dtype: type) -> None:
    machine = make_machine(5, 4, seed=28, dtype=dtype)
    state = RbmState(machine, np.array([1, -1, -1, 1, 1]))

    machine.update_params(np.full(machine.dim, 0.1, dtype=dtype))
    state.refresh()

    np.testing.assert_allclose(state.theta, machine.calc_theta(state.sigma), rtol=1.0e-13)


def test_log_ratio_to_other_state(dtype: type) -> None:
    machine = make_machine(6, 6, seed=29, dtype=dtype, sigma=0.4)
    rng = np.random.default_rng(30)
    first = RbmState(machine, _random_sigma(6, rng))
    second = RbmState(machine, _random_sigma(6, rng))

    expected = machine.log_amplitude(second.sigma) - machine.log_amplitude(first.sigma)
    np.testing.assert_allclose(first.log_ratio_to(second), expected, rtol=1.0e-12, atol=1.0e-12)


def test_swap_with_exchanges_whole_pairs() -> None:
    machine = make_machine(4, 3, seed=31)
    first = RbmState(machine, np.array([1, 1, 1, -1]))
    second = RbmState(machine, np.array([-1, -1, 1, -1]))
    data_first = first.data()
    data_second = second.data()

    first.swap_with(second)

    np.testing.assert_array_equal(first.sigma, data_second[0])
    np.testing.assert_array_equal(first.theta, data_second[1])
    np.testing.assert_array_equal(second.sigma, data_first[0])
    np.testing.assert_array_equal(second.theta, data_first[1])

    other = RbmState(machine.copy(), np.array([1, 1, 1, 1]))
    with pytest.raises(ValueError):
        first.swap_with(other)


def test_copy_is_independent() -> None:
    machine = make_machine(4, 3, seed=32)
    state = RbmState(machine, np.array([1, -1, 1, -1]))
    clone = state.copy()
    clone.flip(0)
    assert state.sigma_at(0) == 1
    assert clone.sigma_at(0) == -1


def test_state_ref_over_external_data(dtype: type) -> None:
    machine = make_machine(5, 3, seed=33, dtype=dtype)
    sigma = np.array([1, -1, -1, 1, -1], dtype=np.int8)
    ref = RbmStateRef.from_data(machine, machine.make_data(sigma))
    owned = RbmState(machine, sigma)

    np.testing.assert_allclose(ref.log_ratio(2), owned.log_ratio(2), rtol=1.0e-14)
    np.testing.assert_allclose(ref.log_derivative(), machine.log_derivative(sigma), rtol=1.0e-14)
    assert ref.theta_at(0) == owned.theta_at(0)
    with pytest.raises(ValueError):
        RbmStateRef(machine, sigma, np.zeros(4))
