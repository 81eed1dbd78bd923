from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from rbmvmc.nqs.rbm import RbmMachine, log_cosh
from rbmvmc.types import Scalar, ScalarArray, SpinArray
from rbmvmc.utils.checks import require_distinct_sites, require_shape, require_spin_values


def _normalize_sites(sites: tuple[int | Iterable[int], ...]) -> tuple[int, ...]:
    if len(sites) == 1 and not isinstance(sites[0], (int, np.integer)):
        return tuple(int(s) for s in sites[0])  # type: ignore[union-attr]
    return tuple(int(s) for s in sites)  # type: ignore[arg-type]


class _RbmStateBase:
    """Amplitude-ratio queries shared by owned and borrowed states."""

    _machine: RbmMachine
    _sigma: SpinArray
    _theta: ScalarArray

    @property
    def machine(self) -> RbmMachine:
        return self._machine

    @property
    def sigma(self) -> SpinArray:
        view = self._sigma.view()
        view.flags.writeable = False
        return view

    @property
    def theta(self) -> ScalarArray:
        view = self._theta.view()
        view.flags.writeable = False
        return view

    def sigma_at(self, i: int) -> int:
        return int(self._sigma[i])

    def theta_at(self, j: int) -> Scalar:
        return self._scalar(self._theta[j])

    def _scalar(self, value: complex | float) -> Scalar:
        return complex(value) if self._machine.is_complex else float(np.real(value))

    def log_ratio(self, *sites: int | Iterable[int]) -> Scalar:
        """``log(psi(sigma with sites flipped) / psi(sigma))`` from the cached field.

        Accepts one site, two sites, or any collection of distinct sites. The
        state is left untouched.
        """

        flips = _normalize_sites(sites)
        if not flips:
            return self._scalar(0.0)
        require_distinct_sites("sites", flips, self._machine.n_visible)

        machine = self._machine
        if len(flips) == 1:
            k = flips[0]
            s_k = float(self._sigma[k])
            result = -2.0 * machine.a[k] * s_k
            shifted = self._theta - 2.0 * s_k * machine.w[:, k]
        else:
            idx = np.asarray(flips, dtype=np.int64)
            s = self._sigma[idx].astype(np.float64)
            result = -2.0 * np.sum(machine.a[idx] * s)
            shifted = self._theta - 2.0 * (machine.w[:, idx] @ s)

        result = result + np.sum(log_cosh(shifted) - log_cosh(self._theta))
        return self._scalar(result)

    def ratio(self, *sites: int | Iterable[int]) -> Scalar:
        return self._scalar(np.exp(self.log_ratio(*sites)))

    def log_amplitude(self) -> Scalar:
        return self._machine.log_amplitude(self._sigma, self._theta)

    def log_derivative(self) -> ScalarArray:
        return self._machine.log_derivative(self._sigma, self._theta)

    def data(self) -> tuple[SpinArray, ScalarArray]:
        """Independent ``(sigma, theta)`` snapshot."""

        return self._sigma.copy(), self._theta.copy()


class RbmState(_RbmStateBase):
    """Owned ``(sigma, theta)`` pair kept consistent under spin flips.

    ``theta == W sigma + b`` holds after construction and after every mutator.
    Flipping ``k`` sites costs ``O(n_hidden * k)``.
    """

    def __init__(self, machine: RbmMachine, sigma: SpinArray) -> None:
        self._machine = machine
        self._sigma = self._validated(sigma)
        self._theta = machine.calc_theta(self._sigma)

    def _validated(self, sigma: SpinArray) -> SpinArray:
        spins = np.array(sigma, dtype=np.int8)
        require_shape("sigma", spins, (self._machine.n_visible,))
        require_spin_values("sigma", spins)
        return spins

    def set_sigma(self, sigma: SpinArray) -> None:
        self._sigma = self._validated(sigma)
        self._theta = self._machine.calc_theta(self._sigma)

    def refresh(self) -> None:
        """Recompute ``theta`` after the parameters changed."""

        self._theta = self._machine.calc_theta(self._sigma)

    def flip(self, *sites: int | Iterable[int]) -> None:
        flips = _normalize_sites(sites)
        if not flips:
            return
        require_distinct_sites("sites", flips, self._machine.n_visible)

        w = self._machine.w
        if len(flips) == 1:
            k = flips[0]
            self._theta -= 2.0 * float(self._sigma[k]) * w[:, k]
            self._sigma[k] = -self._sigma[k]
            return

        idx = np.asarray(flips, dtype=np.int64)
        self._theta -= 2.0 * (w[:, idx] @ self._sigma[idx].astype(np.float64))
        self._sigma[idx] = -self._sigma[idx]

    def log_ratio_to(self, other: _RbmStateBase) -> Scalar:
        """``log(psi(other.sigma) / psi(self.sigma))`` from both cached fields."""

        delta = (other._sigma.astype(np.float64) - self._sigma.astype(np.float64))
        result = np.dot(self._machine.a, delta)
        result = result + np.sum(log_cosh(other._theta) - log_cosh(self._theta))
        return self._scalar(result)

    def swap_with(self, other: RbmState) -> None:
        """Exchange configurations with another state of the same machine."""

        if other._machine is not self._machine:
            raise ValueError("states must share the same machine to exchange configurations")
        self._sigma, other._sigma = other._sigma, self._sigma
        self._theta, other._theta = other._theta, self._theta

    def copy(self) -> RbmState:
        clone = RbmState.__new__(RbmState)
        clone._machine = self._machine
        clone._sigma = self._sigma.copy()
        clone._theta = self._theta.copy()
        return clone


class RbmStateRef(_RbmStateBase):
    """Borrowed view over a ``(sigma, theta)`` pair computed elsewhere."""

    def __init__(self, machine: RbmMachine, sigma: SpinArray, theta: ScalarArray) -> None:
        require_shape("sigma", np.asarray(sigma), (machine.n_visible,))
        require_shape("theta", np.asarray(theta), (machine.n_hidden,))
        self._machine = machine
        self._sigma = np.asarray(sigma)
        self._theta = np.asarray(theta)

    @classmethod
    def from_data(cls, machine: RbmMachine, data: tuple[SpinArray, ScalarArray]) -> RbmStateRef:
        return cls(machine, data[0], data[1])
