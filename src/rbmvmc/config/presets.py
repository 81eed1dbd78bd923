from __future__ import annotations

from rbmvmc.config.schemas import (
    OptimizerConfig,
    RbmModelConfig,
    SamplingConfig,
    SrConfig,
    VmcConfig,
    XxzConfig,
)


def xxz_small_config(seed: int = 7, delta: float = 1.0) -> VmcConfig:
    """Small CI/laptop XXZ configuration."""

    return VmcConfig(
        model=RbmModelConfig(n_visible=6, alpha=1, use_bias=True, complex_params=True, init_std=0.01),
        hamiltonian=XxzConfig(J=1.0, delta=delta, periodic=True, sign_rule=True),
        sampling=SamplingConfig(
            sweeper="swap",
            n_chains=4,
            n_sweeps=200,
            n_therm=40,
            fixed_magnetization=True,
        ),
        sr=SrConfig(
            lambda_max=1.0,
            lambda_decay=0.9,
            lambda_min=1.0e-3,
            use_cg=True,
            cg_tolerance=1.0e-4,
            cg_max_iterations=200,
        ),
        optimizer=OptimizerConfig(name="sgd", eta=0.05),
        n_iterations=20,
        blocking_bins=10,
        seed=seed,
    )


def xxz_paper_config(seed: int = 11, delta: float = 1.0) -> VmcConfig:
    """Production-size XXZ chain run with parallel tempering."""

    return VmcConfig(
        model=RbmModelConfig(n_visible=12, alpha=2, use_bias=True, complex_params=True, init_std=1.0e-3),
        hamiltonian=XxzConfig(J=1.0, delta=delta, periodic=True, sign_rule=False),
        sampling=SamplingConfig(
            sweeper="swap",
            n_chains=8,
            sweeps_per_param=2.0,
            therm_fraction=0.2,
            fixed_magnetization=True,
        ),
        sr=SrConfig(
            lambda_max=10.0,
            lambda_decay=0.9,
            lambda_min=1.0e-3,
            use_cg=True,
            cg_tolerance=1.0e-4,
            cg_max_iterations=1_000,
        ),
        optimizer=OptimizerConfig(name="adam", eta=1.0e-3),
        n_iterations=3_000,
        blocking_bins=50,
        seed=seed,
    )


def xxz_exact_config(seed: int = 3, delta: float = 1.0) -> VmcConfig:
    """Small system for the exact (enumerated) SR loop."""

    return VmcConfig(
        model=RbmModelConfig(n_visible=8, alpha=1, use_bias=True, complex_params=True, init_std=0.01),
        hamiltonian=XxzConfig(J=1.0, delta=delta, periodic=True, sign_rule=True),
        sampling=SamplingConfig(fixed_magnetization=True),
        sr=SrConfig(lambda_max=1.0, lambda_decay=0.9, lambda_min=1.0e-3, use_cg=False),
        optimizer=OptimizerConfig(name="sgd", eta=0.05),
        n_iterations=100,
        seed=seed,
    )
