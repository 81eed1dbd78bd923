"""Variational Monte Carlo for RBM wavefunctions with Stochastic Reconfiguration."""

from rbmvmc.config.schemas import VmcConfig
from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.nqs.state import RbmState, RbmStateRef
from rbmvmc.vmc.training import run_exact, run_sampled, train_xxz, train_xxz_exact

__all__ = [
    "RbmMachine",
    "RbmState",
    "RbmStateRef",
    "VmcConfig",
    "run_exact",
    "run_sampled",
    "train_xxz",
    "train_xxz_exact",
]
