from __future__ import annotations

import argparse
from pathlib import Path

import numpy as np

from rbmvmc.nqs.serialization import load_machine
from rbmvmc.nqs.wavefunction import full_psi
from rbmvmc.physics.basis import FixedMagnetizationBasis, FullBasis
from rbmvmc.utils.io import save_npz


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Dump the normalized amplitudes of a saved RBM")
    parser.add_argument("snapshot", type=Path)
    parser.add_argument("--output", type=Path, default=Path("results/psi.npz"))
    parser.add_argument("--n-up", type=int, default=None)
    parser.add_argument("--workers", type=int, default=1)
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    machine = load_machine(args.snapshot)

    n = machine.n_visible
    basis = FullBasis(n) if args.n_up is None else FixedMagnetizationBasis(n, args.n_up)
    configurations = basis.enumerate()
    psi = full_psi(machine, configurations, normalize=True, n_workers=args.workers)

    save_npz(args.output, configurations=configurations, psi=psi)
    print(f"Wrote {psi.shape[0]} amplitudes (norm {np.linalg.norm(psi):.6f}) to {args.output}")


if __name__ == "__main__":
    main()
