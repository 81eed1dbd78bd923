from rbmvmc.optim.cg import CgResult, solve_cg
from rbmvmc.optim.dense import solve_cholesky
from rbmvmc.optim.exact import SrMatExact
from rbmvmc.optim.optimizers import Adam, Optimizer, Sgd, build_optimizer
from rbmvmc.optim.schedules import diagonal_shift, geometric_decay
from rbmvmc.optim.sr import (
    SrMatFree,
    SrStatistics,
    build_sr_matvec,
    compute_sr_statistics,
    explicit_sr_matrix,
    normalized_weights,
)

__all__ = [
    "Adam",
    "CgResult",
    "Optimizer",
    "Sgd",
    "SrMatExact",
    "SrMatFree",
    "SrStatistics",
    "build_optimizer",
    "build_sr_matvec",
    "compute_sr_statistics",
    "diagonal_shift",
    "explicit_sr_matrix",
    "geometric_decay",
    "normalized_weights",
    "solve_cg",
    "solve_cholesky",
]
