from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import numpy as np

from rbmvmc.nqs.parameterization import (
    FlatParameterLayout,
    build_layout,
    flatten_with_layout,
    unflatten_with_layout,
)
from rbmvmc.types import Scalar, ScalarArray, SpinArray
from rbmvmc.utils.checks import require_shape

LOG2: float = float(np.log(2.0))

SUPPORTED_DTYPES: tuple[np.dtype, ...] = (np.dtype(np.float64), np.dtype(np.complex128))


def log_cosh(z: Any) -> Any:
    """Overflow-free ``log(cosh(z))`` for real or complex arguments."""

    z = np.asarray(z)
    sign = np.where(np.real(z) >= 0.0, 1.0, -1.0)
    sz = sign * z
    return sz + np.log1p(np.exp(-2.0 * sz)) - LOG2


class RbmMachine:
    """RBM parameter store with ``psi(s) = exp(a.s) * prod_j cosh(theta_j)``.

    ``W`` has shape ``(n_hidden, n_visible)`` and ``theta = W s + b``. The flat
    parameter vector holds ``W`` with the visible index running slowest
    (entry ``i * n_hidden + j`` is ``W[j, i]``), followed by ``a`` and ``b``
    when biases are enabled.
    """

    def __init__(
        self,
        n_visible: int,
        n_hidden: int,
        use_bias: bool = True,
        dtype: np.dtype | type = np.float64,
    ) -> None:
        if n_visible < 1 or n_hidden < 1:
            raise ValueError("n_visible and n_hidden must be >= 1")
        resolved = np.dtype(dtype)
        if resolved not in SUPPORTED_DTYPES:
            raise ValueError(f"unsupported dtype {resolved}; use float64 or complex128")

        self._n = int(n_visible)
        self._m = int(n_hidden)
        self._use_bias = bool(use_bias)
        self._dtype = resolved
        self._locked = 0

        self._w = np.zeros((self._m, self._n), dtype=resolved)
        self._a = np.zeros(self._n, dtype=resolved)
        self._b = np.zeros(self._m, dtype=resolved)
        self._layout = self._build_layout()

    def _build_layout(self) -> FlatParameterLayout:
        shapes: list[tuple[str, tuple[int, ...]]] = [("w", (self._m, self._n))]
        if self._use_bias:
            shapes += [("a", (self._n,)), ("b", (self._m,))]
        return build_layout(shapes, transposed=frozenset({"w"}))

    @property
    def n_visible(self) -> int:
        return self._n

    @property
    def n_hidden(self) -> int:
        return self._m

    @property
    def use_bias(self) -> bool:
        return self._use_bias

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def is_complex(self) -> bool:
        return self._dtype.kind == "c"

    @property
    def layout(self) -> FlatParameterLayout:
        return self._layout

    @property
    def w(self) -> ScalarArray:
        return _readonly(self._w)

    @property
    def a(self) -> ScalarArray:
        return _readonly(self._a)

    @property
    def b(self) -> ScalarArray:
        return _readonly(self._b)

    @property
    def dim(self) -> int:
        if self._use_bias:
            return self._m * self._n + self._n + self._m
        return self._m * self._n

    @property
    def locked(self) -> bool:
        return self._locked > 0

    @contextmanager
    def read_only(self) -> Iterator[RbmMachine]:
        """Freeze the parameters for a sampling/statistics pass."""

        self._locked += 1
        try:
            yield self
        finally:
            self._locked -= 1

    def _check_writable(self) -> None:
        if self._locked:
            raise RuntimeError("parameters are read-only during a sampling/statistics pass")

    def initialize_random(self, rng: np.random.Generator, sigma: float = 1.0e-3) -> None:
        """Gaussian initialisation; complex stores draw real and imaginary parts."""

        self._check_writable()
        self._w = self._draw(rng, sigma, (self._m, self._n))
        if self._use_bias:
            self._a = self._draw(rng, sigma, (self._n,))
            self._b = self._draw(rng, sigma, (self._m,))

    def _draw(self, rng: np.random.Generator, sigma: float, shape: tuple[int, ...]) -> ScalarArray:
        if self.is_complex:
            real = rng.normal(loc=0.0, scale=sigma, size=shape)
            imag = rng.normal(loc=0.0, scale=sigma, size=shape)
            return (real + 1j * imag).astype(self._dtype)
        return rng.normal(loc=0.0, scale=sigma, size=shape).astype(self._dtype)

    def set_w(self, w: ScalarArray) -> None:
        self._check_writable()
        require_shape("w", np.asarray(w), (self._m, self._n))
        self._w = np.array(w, dtype=self._dtype)

    def set_a(self, a: ScalarArray) -> None:
        self._check_writable()
        require_shape("a", np.asarray(a), (self._n,))
        self._a = np.array(a, dtype=self._dtype)

    def set_b(self, b: ScalarArray) -> None:
        self._check_writable()
        require_shape("b", np.asarray(b), (self._m,))
        self._b = np.array(b, dtype=self._dtype)

    def named_arrays(self) -> dict[str, ScalarArray]:
        return {"w": self._w, "a": self._a, "b": self._b}

    def get_params(self) -> ScalarArray:
        return flatten_with_layout(self.named_arrays(), self._layout, dtype=self._dtype)

    def set_params(self, vector: ScalarArray) -> None:
        self._check_writable()
        vector = np.asarray(vector)
        require_shape("params", vector, (self.dim,))
        unpacked = unflatten_with_layout(vector.astype(self._dtype), self._layout)
        self._w = unpacked["w"]
        if self._use_bias:
            self._a = unpacked["a"]
            self._b = unpacked["b"]

    def update_params(self, delta: ScalarArray) -> None:
        """Add ``delta`` (flat layout) to the parameters in place."""

        self._check_writable()
        delta = np.asarray(delta)
        require_shape("delta", delta, (self.dim,))
        unpacked = unflatten_with_layout(delta.astype(self._dtype), self._layout)
        self._w += unpacked["w"]
        if self._use_bias:
            self._a += unpacked["a"]
            self._b += unpacked["b"]

    def calc_theta(self, sigma: SpinArray) -> ScalarArray:
        """Dense hidden field ``theta = W sigma + b``."""

        return self._w @ np.asarray(sigma, dtype=self._dtype) + self._b

    def calc_gamma(self, hidden: SpinArray) -> ScalarArray:
        """Visible field ``gamma = W^T h + a`` for a hidden configuration."""

        return self._w.T @ np.asarray(hidden, dtype=self._dtype) + self._a

    def make_data(self, sigma: SpinArray) -> tuple[SpinArray, ScalarArray]:
        spins = np.asarray(sigma, dtype=np.int8)
        return spins, self.calc_theta(spins)

    def log_amplitude(self, sigma: SpinArray, theta: ScalarArray | None = None) -> Scalar:
        if theta is None:
            theta = self.calc_theta(sigma)
        linear = np.dot(self._a, np.asarray(sigma, dtype=self._dtype))
        value = linear + np.sum(log_cosh(theta))
        return complex(value) if self.is_complex else float(value)

    def amplitude(self, sigma: SpinArray, theta: ScalarArray | None = None) -> Scalar:
        if theta is None:
            theta = self.calc_theta(sigma)
        linear = np.dot(self._a, np.asarray(sigma, dtype=self._dtype))
        value = np.exp(linear) * np.prod(np.cosh(theta))
        return complex(value) if self.is_complex else float(value)

    def log_derivative(self, sigma: SpinArray, theta: ScalarArray | None = None) -> ScalarArray:
        """Per-parameter ``d log psi / d p`` in the flat layout."""

        if theta is None:
            theta = self.calc_theta(sigma)
        spins = np.asarray(sigma, dtype=self._dtype)
        tanh_theta = np.tanh(theta)

        out = np.empty(self.dim, dtype=self._dtype)
        n_weights = self._m * self._n
        out[:n_weights] = np.outer(spins, tanh_theta).reshape(-1)
        if self._use_bias:
            out[n_weights : n_weights + self._n] = spins
            out[n_weights + self._n :] = tanh_theta
        return out

    def has_nan(self) -> bool:
        return bool(np.isnan(self._w).any() or np.isnan(self._a).any() or np.isnan(self._b).any())

    def copy(self) -> RbmMachine:
        clone = RbmMachine(self._n, self._m, use_bias=self._use_bias, dtype=self._dtype)
        clone._w = self._w.copy()
        clone._a = self._a.copy()
        clone._b = self._b.copy()
        return clone

    def resize_hidden(self, n_hidden: int) -> None:
        """Change the hidden-layer size, keeping existing weights and zero-filling new ones."""

        self._check_writable()
        if n_hidden < 1:
            raise ValueError("n_hidden must be >= 1")
        keep = min(n_hidden, self._m)

        w = np.zeros((n_hidden, self._n), dtype=self._dtype)
        w[:keep] = self._w[:keep]
        b = np.zeros(n_hidden, dtype=self._dtype)
        b[:keep] = self._b[:keep]

        self._m = int(n_hidden)
        self._w = w
        self._b = b
        self._layout = self._build_layout()

    def params_dict(self) -> dict[str, object]:
        return {
            "name": "RBM",
            "use_bias": self._use_bias,
            "n_visible": self._n,
            "n_hidden": self._m,
            "dtype": self._dtype.name,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RbmMachine):
            return NotImplemented
        if (self._n, self._m, self._use_bias) != (other._n, other._m, other._use_bias):
            return False
        return (
            np.array_equal(self._w, other._w)
            and np.array_equal(self._a, other._a)
            and np.array_equal(self._b, other._b)
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"RbmMachine(n_visible={self._n}, n_hidden={self._m}, "
            f"use_bias={self._use_bias}, dtype={self._dtype.name}, dim={self.dim})"
        )


def _readonly(array: ScalarArray) -> ScalarArray:
    view = array.view()
    view.flags.writeable = False
    return view
