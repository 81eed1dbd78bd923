from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import numpy as np

from rbmvmc.config.schemas import SamplingConfig, SrConfig, VmcConfig
from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.nqs.serialization import save_machine
from rbmvmc.optim.cg import solve_cg
from rbmvmc.optim.dense import solve_cholesky
from rbmvmc.optim.exact import SrMatExact
from rbmvmc.optim.optimizers import Optimizer, build_optimizer
from rbmvmc.optim.schedules import diagonal_shift
from rbmvmc.optim.sr import SrMatFree, explicit_sr_matrix
from rbmvmc.physics.basis import Basis, FixedMagnetizationBasis, FullBasis
from rbmvmc.physics.hamiltonian import Hamiltonian
from rbmvmc.physics.xxz import XxzChain
from rbmvmc.sampling.backend import ChainSampler, Sweeper
from rbmvmc.sampling.sampler import MetropolisSampler
from rbmvmc.sampling.schedules import McmcSchedule
from rbmvmc.sampling.sweepers import BondExchangeSweeper, LocalSweeper, SwapSweeper
from rbmvmc.sampling.tempering import ParallelTemperingSampler
from rbmvmc.types import ScalarArray
from rbmvmc.utils.checks import require_finite
from rbmvmc.utils.logging import log_event
from rbmvmc.utils.rng import RngStreams
from rbmvmc.vmc.estimators import MeanWithError, energy_error

logger = logging.getLogger(__name__)

IterationCallback = Callable[[int, float, float], None]


@dataclass(frozen=True)
class IterationMetrics:
    """Per-iteration diagnostics for SR optimisation."""

    iteration: int
    energy_mean: float
    energy_stderr: float
    energy_variance: float
    diagonal_shift: float
    step_norm: float
    solver_iterations: int
    solver_residual: float
    solver_converged: bool
    applied: bool
    acceptance_rate: float


@dataclass(frozen=True)
class TrainingResult:
    """Optimised parameters and the iteration history."""

    machine: RbmMachine
    history: list[IterationMetrics]

    @property
    def final_energy(self) -> float:
        return self.history[-1].energy_mean


def _write_snapshot(machine: RbmMachine, step: int, every: int, directory: Path | None) -> None:
    if every <= 0 or directory is None or step % every != 0:
        return
    save_machine(directory / f"w{step:04d}.rbmq", machine)


def _apply_update(machine: RbmMachine, optimizer: Optimizer, direction: ScalarArray) -> None:
    """Single-writer phase: optimizer step, in-place update, NaN guard."""

    machine.update_params(optimizer.get_update(direction))
    require_finite("parameters", machine.get_params())


def run_sampled(
    machine: RbmMachine,
    sampler: ChainSampler,
    hamiltonian: Hamiltonian,
    optimizer: Optimizer,
    sr: SrConfig,
    schedule: McmcSchedule,
    n_iterations: int,
    callback: IterationCallback | None = None,
    blocking_bins: int = 10,
    n_workers: int = 1,
    snapshot_every: int = 0,
    snapshot_dir: Path | None = None,
) -> TrainingResult:
    """Monte Carlo SR loop: sample, build statistics, solve, update."""

    srm = SrMatFree(machine, n_workers=n_workers)
    history: list[IterationMetrics] = []

    for step in range(n_iterations):
        _write_snapshot(machine, step, snapshot_every, snapshot_dir)

        sampler.refresh()
        sampler.reset_acceptance_stats()
        with machine.read_only():
            samples = sampler.sample(schedule.n_sweeps, schedule.n_therm)
            stats = srm.construct_from_samples(samples, hamiltonian)

        shift = diagonal_shift(step, sr.lambda_max, sr.lambda_decay, sr.lambda_min)
        srm.set_shift(shift)

        if sr.use_cg:
            cg = solve_cg(
                matvec=srm.matvec(),
                rhs=stats.force,
                rtol=sr.cg_tolerance,
                max_iterations=sr.cg_max_iterations,
            )
            direction = cg.solution
            solver_iterations, solver_residual, converged = cg.iterations, cg.residual_norm, cg.converged
            if not converged:
                log_event(
                    logger,
                    "cg_not_converged",
                    level=logging.WARNING,
                    iteration=step,
                    iterations=cg.iterations,
                    residual_norm=cg.residual_norm,
                    policy=sr.on_cg_failure,
                )
        else:
            direction = solve_cholesky(explicit_sr_matrix(stats), stats.force, shift=shift)
            solver_iterations, solver_residual, converged = 0, 0.0, True

        applied = converged or sr.on_cg_failure == "apply"
        if applied:
            _apply_update(machine, optimizer, direction)

        energy_stats = energy_error(stats.local_energies, requested_bins=blocking_bins)
        step_norm = float(np.linalg.norm(direction))
        metrics = IterationMetrics(
            iteration=step,
            energy_mean=energy_stats.mean,
            energy_stderr=energy_stats.stderr,
            energy_variance=stats.energy_variance,
            diagonal_shift=shift,
            step_norm=step_norm,
            solver_iterations=solver_iterations,
            solver_residual=solver_residual,
            solver_converged=converged,
            applied=applied,
            acceptance_rate=sampler.acceptance_rate,
        )
        history.append(metrics)
        log_event(logger, "iteration", **metrics.__dict__)

        if callback is not None:
            callback(step, energy_stats.mean, step_norm)

    return TrainingResult(machine=machine, history=history)


def run_exact(
    machine: RbmMachine,
    basis: Basis,
    hamiltonian: Hamiltonian,
    optimizer: Optimizer,
    sr: SrConfig,
    n_iterations: int,
    callback: IterationCallback | None = None,
    n_workers: int = 1,
    snapshot_every: int = 0,
    snapshot_dir: Path | None = None,
) -> TrainingResult:
    """Enumerated SR loop: exact averages and a Cholesky solve every iteration."""

    srex = SrMatExact(machine, basis, hamiltonian, n_workers=n_workers)
    history: list[IterationMetrics] = []

    for step in range(n_iterations):
        _write_snapshot(machine, step, snapshot_every, snapshot_dir)

        srex.construct_exact()
        energy = srex.energy
        shift = diagonal_shift(step, sr.lambda_max, sr.lambda_decay, sr.lambda_min)
        direction = srex.solve(shift)

        _apply_update(machine, optimizer, direction)

        deviation = np.abs(srex.local_energies - energy) ** 2
        step_norm = float(np.linalg.norm(direction))
        metrics = IterationMetrics(
            iteration=step,
            energy_mean=energy,
            energy_stderr=0.0,
            energy_variance=float(np.dot(srex.probabilities, deviation)),
            diagonal_shift=shift,
            step_norm=step_norm,
            solver_iterations=0,
            solver_residual=0.0,
            solver_converged=True,
            applied=True,
            acceptance_rate=1.0,
        )
        history.append(metrics)
        log_event(logger, "iteration", **metrics.__dict__)

        if callback is not None:
            callback(step, energy, step_norm)

    return TrainingResult(machine=machine, history=history)


def build_machine(config: VmcConfig, rngs: RngStreams) -> RbmMachine:
    model = config.model
    machine = RbmMachine(
        n_visible=model.n_visible,
        n_hidden=model.n_hidden,
        use_bias=model.use_bias,
        dtype=np.complex128 if model.complex_params else np.float64,
    )
    machine.initialize_random(rngs.numpy, sigma=model.init_std)
    return machine


def build_hamiltonian(config: VmcConfig) -> XxzChain:
    ham = config.hamiltonian
    return XxzChain(
        n_sites=config.model.n_visible,
        J=ham.J,
        delta=ham.delta,
        periodic=ham.periodic,
        sign_rule=ham.sign_rule,
    )


def build_sweeper(sampling: SamplingConfig, n_sites: int) -> Sweeper:
    if sampling.sweeper == "local":
        return LocalSweeper(n_sites)
    if sampling.sweeper == "bond":
        return BondExchangeSweeper.chain(n_sites)
    return SwapSweeper(n_sites)


def build_sampler(config: VmcConfig, machine: RbmMachine, rngs: RngStreams) -> ChainSampler:
    sampling = config.sampling
    n_sites = config.model.n_visible
    sweeper = build_sweeper(sampling, n_sites)
    n_up = n_sites // 2 if sampling.fixed_magnetization else None

    if sampling.n_chains == 1:
        (rng,) = rngs.spawn(1)
        return MetropolisSampler(machine, sweeper, rng, n_up=n_up)
    return ParallelTemperingSampler.from_streams(
        machine,
        sweeper,
        sampling.n_chains,
        rngs,
        n_up=n_up,
        n_workers=sampling.n_workers,
    )


def build_schedule(sampling: SamplingConfig, dim: int) -> McmcSchedule:
    scaled = McmcSchedule.scaled_to_dim(dim, sampling.sweeps_per_param, sampling.therm_fraction)
    return McmcSchedule(
        n_therm=scaled.n_therm if sampling.n_therm is None else sampling.n_therm,
        n_sweeps=scaled.n_sweeps if sampling.n_sweeps is None else sampling.n_sweeps,
    )


def train_xxz(config: VmcConfig, callback: IterationCallback | None = None) -> TrainingResult:
    """Sampled SR ground-state search for the XXZ chain described by ``config``."""

    rngs = RngStreams(seed=config.seed)
    machine = build_machine(config, rngs)
    sampler = build_sampler(config, machine, rngs)

    log_event(
        logger,
        "start",
        machine=machine.params_dict(),
        hamiltonian=build_hamiltonian(config).params(),
        optimizer=config.optimizer.model_dump(),
    )
    return run_sampled(
        machine=machine,
        sampler=sampler,
        hamiltonian=build_hamiltonian(config),
        optimizer=build_optimizer(config.optimizer),
        sr=config.sr,
        schedule=build_schedule(config.sampling, machine.dim),
        n_iterations=config.n_iterations,
        callback=callback,
        blocking_bins=config.blocking_bins,
        n_workers=config.sampling.n_workers,
        snapshot_every=config.snapshot_every,
        snapshot_dir=config.snapshot_dir,
    )


def train_xxz_exact(config: VmcConfig, callback: IterationCallback | None = None) -> TrainingResult:
    """Exact SR ground-state search over the enumerated (sector) basis."""

    rngs = RngStreams(seed=config.seed)
    machine = build_machine(config, rngs)
    n_sites = config.model.n_visible
    basis: Basis = (
        FixedMagnetizationBasis(n_sites, n_sites // 2)
        if config.sampling.fixed_magnetization
        else FullBasis(n_sites)
    )
    return run_exact(
        machine=machine,
        basis=basis,
        hamiltonian=build_hamiltonian(config),
        optimizer=build_optimizer(config.optimizer),
        sr=config.sr,
        n_iterations=config.n_iterations,
        callback=callback,
        n_workers=config.sampling.n_workers,
        snapshot_every=config.snapshot_every,
        snapshot_dir=config.snapshot_dir,
    )


def evaluate_energy(
    machine: RbmMachine,
    sampler: ChainSampler,
    hamiltonian: Hamiltonian,
    schedule: McmcSchedule,
    blocking_bins: int = 10,
) -> MeanWithError:
    """Final energy estimate with blocking error bars."""

    sampler.refresh()
    with machine.read_only():
        samples = sampler.sample(schedule.n_sweeps, schedule.n_therm)
        stats = SrMatFree(machine).construct_from_samples(samples, hamiltonian)
    return energy_error(stats.local_energies, requested_bins=blocking_bins)
