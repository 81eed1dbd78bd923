from rbmvmc.vmc.estimators import MeanWithError, blocking_error_bars, energy_error, local_energies
from rbmvmc.vmc.training import (
    IterationMetrics,
    TrainingResult,
    evaluate_energy,
    run_exact,
    run_sampled,
    train_xxz,
    train_xxz_exact,
)

__all__ = [
    "IterationMetrics",
    "MeanWithError",
    "TrainingResult",
    "blocking_error_bars",
    "energy_error",
    "evaluate_energy",
    "local_energies",
    "run_exact",
    "run_sampled",
    "train_xxz",
    "train_xxz_exact",
]
