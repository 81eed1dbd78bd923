from __future__ import annotations

import numpy as np

from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.nqs.state import RbmState
from rbmvmc.sampling.backend import SampleBatch, Sweeper
from rbmvmc.types import SpinArray


def random_sigma(n_sites: int, rng: np.random.Generator, n_up: int | None = None) -> SpinArray:
    """Uniform random configuration, optionally with exactly ``n_up`` up spins."""

    if n_up is None:
        return rng.choice(np.array([-1, 1], dtype=np.int8), size=n_sites)
    if n_up < 0 or n_up > n_sites:
        raise ValueError(f"n_up must lie in [0, {n_sites}], received {n_up}")
    sigma = -np.ones(n_sites, dtype=np.int8)
    sigma[rng.permutation(n_sites)[:n_up]] = 1
    return sigma


class MetropolisSampler:
    """Single Metropolis-Hastings chain targeting ``|psi(sigma)|^(2 beta)``.

    Each step asks the sweeper for a flip set, evaluates the log ratio from the
    cached field and commits the flip on acceptance. One sweep is
    ``steps_per_sweep`` steps (default ``n_visible``).
    """

    def __init__(
        self,
        machine: RbmMachine,
        sweeper: Sweeper,
        rng: np.random.Generator,
        steps_per_sweep: int | None = None,
        beta: float = 1.0,
        initial_sigma: SpinArray | None = None,
        n_up: int | None = None,
    ) -> None:
        if beta < 0.0:
            raise ValueError("beta must be non-negative")
        self._machine = machine
        self._sweeper = sweeper
        self._rng = rng
        self._steps_per_sweep = machine.n_visible if steps_per_sweep is None else steps_per_sweep
        if self._steps_per_sweep < 1:
            raise ValueError("steps_per_sweep must be >= 1")
        self.beta = float(beta)

        if initial_sigma is None:
            initial_sigma = random_sigma(machine.n_visible, rng, n_up=n_up)
        self._state = RbmState(machine, initial_sigma)

        self._n_proposed = 0
        self._n_accepted = 0

    @property
    def machine(self) -> RbmMachine:
        return self._machine

    @property
    def state(self) -> RbmState:
        return self._state

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    def randomize_sigma(self, n_up: int | None = None) -> None:
        self._state.set_sigma(random_sigma(self._machine.n_visible, self._rng, n_up=n_up))

    def set_sigma(self, sigma: SpinArray) -> None:
        self._state.set_sigma(sigma)

    def refresh(self) -> None:
        self._state.refresh()

    def step(self) -> bool:
        """One Metropolis transition; returns whether the move was taken."""

        flips = self._sweeper.propose_move(self._state, self._rng)
        if not flips:
            return False

        self._n_proposed += 1
        log_acceptance = 2.0 * self.beta * float(np.real(self._state.log_ratio(flips)))
        if log_acceptance >= 0.0 or np.log(self._rng.random()) < log_acceptance:
            self._state.flip(flips)
            self._n_accepted += 1
            return True
        return False

    def sweep(self) -> None:
        for _ in range(self._steps_per_sweep):
            self.step()

    def sample(self, n_sweeps: int, n_therm: int = 0) -> SampleBatch:
        if n_sweeps < 0 or n_therm < 0:
            raise ValueError("n_sweeps and n_therm must be non-negative")

        for _ in range(n_therm):
            self.sweep()

        pairs = []
        for _ in range(n_sweeps):
            self.sweep()
            pairs.append(self._state.data())

        return SampleBatch.from_pairs(
            pairs,
            n_visible=self._machine.n_visible,
            n_hidden=self._machine.n_hidden,
            dtype=self._machine.dtype,
        )

    @property
    def acceptance_rate(self) -> float:
        if self._n_proposed == 0:
            return 0.0
        return self._n_accepted / self._n_proposed

    def reset_acceptance_stats(self) -> None:
        self._n_proposed = 0
        self._n_accepted = 0
