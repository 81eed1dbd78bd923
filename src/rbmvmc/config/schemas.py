from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RbmModelConfig(BaseModel):
    """RBM ansatz structure and initialisation."""

    model_config = ConfigDict(extra="forbid")

    n_visible: int = Field(ge=1)
    alpha: int = Field(default=1, ge=1)
    use_bias: bool = True
    complex_params: bool = True
    init_std: float = Field(default=1.0e-2, gt=0.0)

    @property
    def n_hidden(self) -> int:
        return self.alpha * self.n_visible


class XxzConfig(BaseModel):
    """XXZ chain couplings in the sigma^z basis."""

    model_config = ConfigDict(extra="forbid")

    J: float = 1.0
    delta: float = 1.0
    periodic: bool = True
    sign_rule: bool = False


class SamplingConfig(BaseModel):
    """Per-iteration MCMC schedule.

    ``n_sweeps``/``n_therm`` fixed counts win over the ``*_per_param`` scaling
    when both are given.
    """

    model_config = ConfigDict(extra="forbid")

    sweeper: Literal["local", "swap", "bond"] = "swap"
    n_chains: int = Field(default=1, ge=1)
    n_sweeps: int | None = Field(default=None, ge=1)
    n_therm: int | None = Field(default=None, ge=0)
    sweeps_per_param: float = Field(default=2.0, gt=0.0)
    therm_fraction: float = Field(default=0.2, ge=0.0)
    fixed_magnetization: bool = True
    n_workers: int = Field(default=1, ge=1)


class SrConfig(BaseModel):
    """Stochastic Reconfiguration regularisation and solver settings."""

    model_config = ConfigDict(extra="forbid")

    lambda_max: float = Field(default=10.0, gt=0.0)
    lambda_decay: float = Field(default=0.9, gt=0.0, le=1.0)
    lambda_min: float = Field(default=1.0e-3, gt=0.0)
    use_cg: bool = True
    cg_tolerance: float = Field(default=1.0e-4, gt=0.0)
    cg_max_iterations: int = Field(default=500, ge=1)
    on_cg_failure: Literal["apply", "skip"] = "apply"

    @model_validator(mode="after")
    def _check_lambda_bounds(self) -> SrConfig:
        if self.lambda_min > self.lambda_max:
            raise ValueError("lambda_min must be <= lambda_max")
        return self


class OptimizerConfig(BaseModel):
    """Step rule applied to the natural-gradient direction."""

    model_config = ConfigDict(extra="forbid")

    name: Literal["sgd", "adam"] = "sgd"
    eta: float = Field(default=0.05, gt=0.0)
    momentum: float = Field(default=0.0, ge=0.0, lt=1.0)
    beta1: float = Field(default=0.9, ge=0.0, lt=1.0)
    beta2: float = Field(default=0.999, ge=0.0, lt=1.0)
    eps: float = Field(default=1.0e-8, gt=0.0)


class VmcConfig(BaseModel):
    """Everything needed to reproduce one ground-state optimisation run."""

    model_config = ConfigDict(extra="forbid")

    model: RbmModelConfig
    hamiltonian: XxzConfig
    sampling: SamplingConfig
    sr: SrConfig
    optimizer: OptimizerConfig
    n_iterations: int = Field(ge=1)
    blocking_bins: int = Field(default=10, ge=1)
    snapshot_every: int = Field(default=0, ge=0)
    snapshot_dir: Path | None = None
    seed: int = Field(default=0, ge=0)
