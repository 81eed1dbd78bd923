from __future__ import annotations

from rbmvmc.config.presets import xxz_small_config
from rbmvmc.vmc.training import train_xxz

if __name__ == "__main__":
    config = xxz_small_config(seed=0)

    def report(iteration: int, energy: float, step_norm: float) -> None:
        print(f"{iteration}\t{energy:.8f}\t{step_norm:.6f}")

    result = train_xxz(config=config, callback=report)

    print("XXZ small run complete")
    print(f"Iterations: {len(result.history)}")
    print(f"Final energy: {result.final_energy:.6f}")
