from __future__ import annotations

import argparse
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from rbmvmc.config.presets import xxz_exact_config, xxz_paper_config, xxz_small_config
from rbmvmc.physics.basis import FixedMagnetizationBasis
from rbmvmc.physics.hamiltonian import dense_matrix
from rbmvmc.physics.observables import magnetization_batch, nearest_neighbor_correlator
from rbmvmc.utils.io import save_json
from rbmvmc.utils.logging import configure_logging
from rbmvmc.utils.rng import RngStreams
from rbmvmc.vmc.training import (
    build_hamiltonian,
    build_sampler,
    build_schedule,
    evaluate_energy,
    train_xxz,
    train_xxz_exact,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SR ground-state search for the XXZ chain")
    parser.add_argument("--mode", choices=("small", "paper", "exact"), default="small")
    parser.add_argument("--delta", type=float, default=1.0)
    parser.add_argument("--output-dir", type=Path, default=Path("results/xxz"))
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--iterations", type=int, default=None)
    return parser.parse_args()


def main() -> None:
    configure_logging()
    args = parse_args()

    if args.mode == "small":
        config = xxz_small_config(seed=7 if args.seed is None else args.seed, delta=args.delta)
    elif args.mode == "paper":
        config = xxz_paper_config(seed=11 if args.seed is None else args.seed, delta=args.delta)
    else:
        config = xxz_exact_config(seed=3 if args.seed is None else args.seed, delta=args.delta)
    if args.iterations is not None:
        config = config.model_copy(update={"n_iterations": args.iterations})

    output_dir: Path = args.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)
    config = config.model_copy(update={"snapshot_dir": output_dir / "snapshots"})

    train = train_xxz_exact if args.mode == "exact" else train_xxz
    result = train(config)

    reference: float | None = None
    n_sites = config.model.n_visible
    if n_sites <= 14:
        sector = FixedMagnetizationBasis(n_sites, n_sites // 2).enumerate()
        matrix = dense_matrix(build_hamiltonian(config), sector)
        reference = float(np.linalg.eigvalsh(matrix)[0])

    final: dict[str, float] | None = None
    if args.mode != "exact":
        hamiltonian = build_hamiltonian(config)
        sampler = build_sampler(config, result.machine, RngStreams(seed=config.seed + 1))
        schedule = build_schedule(config.sampling, result.machine.dim)
        estimate = evaluate_energy(result.machine, sampler, hamiltonian, schedule, config.blocking_bins)
        samples = sampler.sample(schedule.n_sweeps)
        final = {
            "energy": estimate.mean,
            "energy_stderr": estimate.stderr,
            "magnetization": float(np.mean(magnetization_batch(samples.sigmas))),
            "zz_correlator": nearest_neighbor_correlator(samples.sigmas, hamiltonian.bonds),
        }

    energies = [m.energy_mean for m in result.history]
    errors = [m.energy_stderr for m in result.history]
    iterations = [m.iteration for m in result.history]

    fig, ax = plt.subplots(figsize=(6.0, 4.0))
    ax.errorbar(iterations, energies, yerr=errors, fmt="o-", ms=3, lw=1.0, capsize=2)
    if reference is not None:
        ax.axhline(reference, color="k", ls="--", lw=1.0, label="exact")
        ax.legend()
    ax.set_xlabel("Iteration")
    ax.set_ylabel("Energy")
    ax.set_title(f"XXZ chain, delta={args.delta} ({args.mode} mode)")
    ax.grid(alpha=0.3)
    fig.tight_layout()
    fig.savefig(output_dir / "xxz_convergence.png", dpi=150)
    plt.close(fig)

    payload = {
        "mode": args.mode,
        "config": config.model_dump(mode="json"),
        "history": [m.__dict__ for m in result.history],
        "final_energy": result.final_energy,
        "exact_energy": reference,
        "final_estimate": final,
    }
    save_json(output_dir / "xxz_metrics.json", payload)


if __name__ == "__main__":
    main()
