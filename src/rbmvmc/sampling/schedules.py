from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class McmcSchedule:
    """Burn-in and recording lengths, in sweeps."""

    n_therm: int
    n_sweeps: int

    def __post_init__(self) -> None:
        if self.n_therm < 0:
            raise ValueError("n_therm must be >= 0")
        if self.n_sweeps < 1:
            raise ValueError("n_sweeps must be >= 1")

    @classmethod
    def scaled_to_dim(cls, dim: int, sweeps_per_param: float, therm_fraction: float) -> McmcSchedule:
        """Sample count proportional to the number of parameters."""

        n_sweeps = max(1, int(round(sweeps_per_param * dim)))
        return cls(n_therm=int(round(therm_fraction * n_sweeps)), n_sweeps=n_sweeps)
