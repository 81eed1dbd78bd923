from rbmvmc.config.presets import xxz_exact_config, xxz_paper_config, xxz_small_config
from rbmvmc.config.schemas import (
    OptimizerConfig,
    RbmModelConfig,
    SamplingConfig,
    SrConfig,
    VmcConfig,
    XxzConfig,
)

__all__ = [
    "OptimizerConfig",
    "RbmModelConfig",
    "SamplingConfig",
    "SrConfig",
    "VmcConfig",
    "XxzConfig",
    "xxz_exact_config",
    "xxz_paper_config",
    "xxz_small_config",
]
