from rbmvmc.utils.checks import (
    require_distinct_sites,
    require_finite,
    require_shape,
    require_spin_values,
)
from rbmvmc.utils.io import ensure_dir, save_json, save_npz
from rbmvmc.utils.logging import configure_logging, log_event
from rbmvmc.utils.parallel import parallel_map
from rbmvmc.utils.rng import RngStreams

__all__ = [
    "RngStreams",
    "configure_logging",
    "ensure_dir",
    "log_event",
    "parallel_map",
    "require_distinct_sites",
    "require_finite",
    "require_shape",
    "require_spin_values",
    "save_json",
    "save_npz",
]
