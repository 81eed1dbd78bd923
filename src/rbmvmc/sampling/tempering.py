from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.sampling.backend import SampleBatch, Sweeper
from rbmvmc.sampling.sampler import MetropolisSampler, random_sigma
from rbmvmc.types import FloatArray
from rbmvmc.utils.parallel import parallel_map
from rbmvmc.utils.rng import RngStreams


def linear_betas(n_chains: int) -> FloatArray:
    """Inverse temperatures ``1 - k / n_chains``; chain 0 samples ``|psi|^2``."""

    if n_chains < 1:
        raise ValueError("n_chains must be >= 1")
    return 1.0 - np.arange(n_chains, dtype=np.float64) / float(n_chains)


class ParallelTemperingSampler:
    """Replica-exchange sampler over a ladder of inverse temperatures.

    Every sweep advances each chain by one local sweep and then attempts
    exchanges between neighbouring rungs. Only chain 0 (``beta = 1``) is
    recorded, so its stationary distribution is ``|psi|^2``.
    """

    def __init__(
        self,
        machine: RbmMachine,
        sweeper: Sweeper,
        rngs: Sequence[np.random.Generator],
        exchange_rng: np.random.Generator,
        betas: FloatArray | None = None,
        steps_per_sweep: int | None = None,
        n_up: int | None = None,
        n_workers: int = 1,
    ) -> None:
        n_chains = len(rngs)
        ladder = linear_betas(n_chains) if betas is None else np.asarray(betas, dtype=np.float64)
        if ladder.shape != (n_chains,):
            raise ValueError(f"expected {n_chains} betas, received shape {ladder.shape}")
        if not np.isclose(ladder[0], 1.0):
            raise ValueError("the first chain must sample at beta = 1")

        self._machine = machine
        self._exchange_rng = exchange_rng
        self._n_workers = n_workers
        self._chains = [
            MetropolisSampler(
                machine,
                sweeper,
                rng,
                steps_per_sweep=steps_per_sweep,
                beta=float(beta),
                n_up=n_up,
            )
            for rng, beta in zip(rngs, ladder)
        ]
        self._n_exchange_proposed = np.zeros(max(n_chains - 1, 0), dtype=np.int64)
        self._n_exchange_accepted = np.zeros(max(n_chains - 1, 0), dtype=np.int64)

    @classmethod
    def from_streams(
        cls,
        machine: RbmMachine,
        sweeper: Sweeper,
        n_chains: int,
        streams: RngStreams,
        **kwargs: object,
    ) -> ParallelTemperingSampler:
        """Give every chain, and the exchange step, its own derived stream."""

        rngs = streams.spawn(n_chains + 1)
        return cls(machine, sweeper, rngs[:n_chains], rngs[n_chains], **kwargs)  # type: ignore[arg-type]

    @property
    def machine(self) -> RbmMachine:
        return self._machine

    @property
    def chains(self) -> list[MetropolisSampler]:
        return list(self._chains)

    @property
    def betas(self) -> FloatArray:
        return np.asarray([c.beta for c in self._chains], dtype=np.float64)

    def randomize_sigma(self, n_up: int | None = None) -> None:
        for chain in self._chains:
            chain.set_sigma(random_sigma(self._machine.n_visible, chain.rng, n_up=n_up))

    def refresh(self) -> None:
        for chain in self._chains:
            chain.refresh()

    def _local_sweeps(self) -> None:
        def advance(chain: MetropolisSampler) -> None:
            chain.sweep()

        parallel_map(advance, self._chains, n_workers=self._n_workers)

    def _exchange(self) -> None:
        for k in range(len(self._chains) - 1):
            lower = self._chains[k]
            upper = self._chains[k + 1]
            log_ratio = float(np.real(lower.state.log_ratio_to(upper.state)))
            log_acceptance = 2.0 * (lower.beta - upper.beta) * log_ratio

            self._n_exchange_proposed[k] += 1
            if log_acceptance >= 0.0 or np.log(self._exchange_rng.random()) < log_acceptance:
                lower.state.swap_with(upper.state)
                self._n_exchange_accepted[k] += 1

    def sweep(self) -> None:
        self._local_sweeps()
        self._exchange()

    def sample(self, n_sweeps: int, n_therm: int = 0) -> SampleBatch:
        if n_sweeps < 0 or n_therm < 0:
            raise ValueError("n_sweeps and n_therm must be non-negative")

        for _ in range(n_therm):
            self.sweep()

        physical = self._chains[0]
        pairs = []
        for _ in range(n_sweeps):
            self.sweep()
            pairs.append(physical.state.data())

        return SampleBatch.from_pairs(
            pairs,
            n_visible=self._machine.n_visible,
            n_hidden=self._machine.n_hidden,
            dtype=self._machine.dtype,
        )

    @property
    def acceptance_rate(self) -> float:
        return self._chains[0].acceptance_rate

    @property
    def exchange_rates(self) -> FloatArray:
        proposed = np.maximum(self._n_exchange_proposed, 1)
        return self._n_exchange_accepted / proposed

    def reset_acceptance_stats(self) -> None:
        for chain in self._chains:
            chain.reset_acceptance_stats()
        self._n_exchange_proposed[:] = 0
        self._n_exchange_accepted[:] = 0
