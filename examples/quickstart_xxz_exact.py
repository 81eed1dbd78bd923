from __future__ import annotations

from rbmvmc.config.presets import xxz_exact_config
from rbmvmc.vmc.training import train_xxz_exact

if __name__ == "__main__":
    config = xxz_exact_config(seed=0)
    result = train_xxz_exact(config=config)

    print("XXZ exact SR run complete")
    print(f"Iterations: {len(result.history)}")
    print(f"Final energy: {result.final_energy:.8f}")
