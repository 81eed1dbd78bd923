from __future__ import annotations

import numpy as np
import pytest

from conftest import make_machine
from rbmvmc.nqs.rbm import RbmMachine, log_cosh


def test_dim_formula_with_and_without_bias() -> None:
    for n_visible in range(1, 6):
        for n_hidden in range(1, 6):
            biased = RbmMachine(n_visible, n_hidden, use_bias=True)
            plain = RbmMachine(n_visible, n_hidden, use_bias=False)
            assert biased.dim == n_hidden * n_visible + n_visible + n_hidden
            assert plain.dim == n_hidden * n_visible
            assert biased.get_params().shape == (biased.dim,)
            assert plain.get_params().shape == (plain.dim,)


def test_flat_layout_order(dtype: type) -> None:
    machine = make_machine(3, 2, seed=1, dtype=dtype)
    flat = machine.get_params()

    n_weights = 3 * 2
    for i in range(3):
        for j in range(2):
            assert flat[i * 2 + j] == machine.w[j, i]
    np.testing.assert_array_equal(flat[n_weights : n_weights + 3], machine.a)
    np.testing.assert_array_equal(flat[n_weights + 3 :], machine.b)


def test_set_params_round_trip_is_identity(dtype: type) -> None:
    machine = make_machine(5, 7, seed=2, dtype=dtype)
    before = machine.copy()

    machine.set_params(machine.get_params())

    assert machine == before
    np.testing.assert_array_equal(machine.get_params(), before.get_params())


def test_update_then_reverse_update_restores_parameters(dtype: type) -> None:
    machine = make_machine(4, 6, seed=3, dtype=dtype)
    original = machine.get_params()
    delta = np.asarray(np.random.default_rng(4).normal(size=machine.dim) * 0.5, dtype=dtype)

    machine.update_params(delta)
    assert not np.allclose(machine.get_params(), original)
    machine.update_params(-delta)

    np.testing.assert_allclose(machine.get_params(), original, rtol=0.0, atol=1.0e-15)


def test_update_without_bias_only_touches_weights() -> None:
    machine = make_machine(3, 3, seed=5, use_bias=False)
    machine.update_params(np.ones(machine.dim))

    np.testing.assert_array_equal(machine.a, np.zeros(3))
    np.testing.assert_array_equal(machine.b, np.zeros(3))


def test_size_mismatch_fails_fast() -> None:
    machine = make_machine(3, 4, seed=6)
    with pytest.raises(ValueError, match="shape mismatch"):
        machine.set_params(np.zeros(machine.dim + 1))
    with pytest.raises(ValueError, match="shape mismatch"):
        machine.update_params(np.zeros(machine.dim - 1))


def test_theta_is_dense_field() -> None:
    machine = make_machine(4, 3, seed=7)
    sigma = np.array([1, -1, -1, 1], dtype=np.int8)
    expected = machine.w @ sigma.astype(np.float64) + machine.b
    np.testing.assert_allclose(machine.calc_theta(sigma), expected, rtol=1.0e-14)


def test_log_amplitude_matches_amplitude(dtype: type) -> None:
    machine = make_machine(5, 4, seed=8, dtype=dtype)
    sigma = np.array([1, 1, -1, 1, -1], dtype=np.int8)

    amp = machine.amplitude(sigma)
    log_amp = machine.log_amplitude(sigma)

    np.testing.assert_allclose(np.exp(log_amp), amp, rtol=1.0e-12)


def test_log_derivative_matches_finite_differences(dtype: type) -> None:
    machine = make_machine(3, 4, seed=9, dtype=dtype)
    sigma = np.array([-1, 1, 1], dtype=np.int8)
    analytic = machine.log_derivative(sigma)

    params = machine.get_params()
    eps = 1.0e-6
    numeric = np.zeros(machine.dim, dtype=dtype)
    for k in range(machine.dim):
        shifted = params.copy()
        shifted[k] += eps
        machine.set_params(shifted)
        plus = machine.log_amplitude(sigma)
        shifted[k] -= 2.0 * eps
        machine.set_params(shifted)
        minus = machine.log_amplitude(sigma)
        numeric[k] = (plus - minus) / (2.0 * eps)
    machine.set_params(params)

    np.testing.assert_allclose(analytic, numeric, rtol=1.0e-6, atol=1.0e-8)


def test_equality_requires_every_component() -> None:
    base = make_machine(3, 2, seed=10)

    only_w_differs = base.copy()
    w = np.array(base.w)
    w[0, 0] += 1.0
    only_w_differs.set_w(w)

    only_a_differs = base.copy()
    only_a_differs.set_a(np.array(base.a) + 1.0)

    # a and b still match, so an OR-combined comparison would call these equal
    assert only_w_differs != base
    assert only_a_differs != base
    assert base.copy() == base


def test_read_only_blocks_mutation() -> None:
    machine = make_machine(3, 3, seed=11)
    with machine.read_only():
        assert machine.locked
        with pytest.raises(RuntimeError):
            machine.update_params(np.zeros(machine.dim))
    assert not machine.locked
    machine.update_params(np.zeros(machine.dim))


def test_exposed_arrays_are_not_writable() -> None:
    machine = make_machine(2, 2, seed=12)
    with pytest.raises(ValueError):
        machine.w[0, 0] = 5.0


def test_has_nan() -> None:
    machine = make_machine(2, 2, seed=13)
    assert not machine.has_nan()
    machine.update_params(np.full(machine.dim, np.nan))
    assert machine.has_nan()


def test_complex_initialization_draws_imaginary_parts() -> None:
    machine = make_machine(4, 4, seed=14, dtype=np.complex128)
    assert machine.is_complex
    assert np.all(np.abs(np.imag(machine.w)) > 0.0)


def test_no_bias_initialization_keeps_biases_zero() -> None:
    machine = make_machine(4, 4, seed=15, use_bias=False)
    np.testing.assert_array_equal(machine.a, np.zeros(4))
    np.testing.assert_array_equal(machine.b, np.zeros(4))


def test_resize_hidden_keeps_existing_weights() -> None:
    machine = make_machine(3, 2, seed=16)
    old_w = np.array(machine.w)
    old_b = np.array(machine.b)

    machine.resize_hidden(4)

    assert machine.n_hidden == 4
    assert machine.dim == 4 * 3 + 3 + 4
    np.testing.assert_array_equal(machine.w[:2], old_w)
    np.testing.assert_array_equal(machine.w[2:], np.zeros((2, 3)))
    np.testing.assert_array_equal(machine.b[:2], old_b)


def test_log_cosh_is_stable_for_large_arguments() -> None:
    values = np.array([-800.0, -3.0, 0.0, 2.5, 800.0])
    out = log_cosh(values)
    assert np.all(np.isfinite(out))
    np.testing.assert_allclose(out[1:4], np.log(np.cosh(values[1:4])), rtol=1.0e-13)
    np.testing.assert_allclose(out[[0, 4]], 800.0 - np.log(2.0), rtol=1.0e-13)

    z = np.array([0.3 + 0.7j, -1.2 + 0.4j])
    np.testing.assert_allclose(np.exp(log_cosh(z)), np.cosh(z), rtol=1.0e-13)


def test_visible_field_from_hidden_configuration(dtype: type) -> None:
    machine = make_machine(3, 4, seed=17, dtype=dtype)
    hidden = np.array([1, -1, -1, 1], dtype=np.int8)
    expected = machine.w.T @ hidden + machine.a
    np.testing.assert_allclose(machine.calc_gamma(hidden), expected, rtol=1.0e-14)


def test_layout_slices_follow_flat_order() -> None:
    machine = make_machine(3, 2, seed=18)
    layout = machine.layout

    assert layout.size == machine.dim
    assert (layout.slice_of("w").start, layout.slice_of("w").stop) == (0, 6)
    assert (layout.slice_of("a").start, layout.slice_of("b").start) == (6, 9)
    with pytest.raises(KeyError):
        layout.slice_of("c")
    assert machine.params_dict()["n_hidden"] == 2
