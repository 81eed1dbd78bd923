from rbmvmc.physics.basis import Basis, FixedMagnetizationBasis, FullBasis
from rbmvmc.physics.hamiltonian import Hamiltonian, chain_bonds, dense_matrix, local_energy
from rbmvmc.physics.observables import (
    magnetization,
    magnetization_batch,
    nearest_neighbor_correlator,
)
from rbmvmc.physics.tfim import (
    SquareLattice,
    TfimHamiltonian,
    build_nearest_neighbor_bonds,
    diagonal_energy,
    flip_spin,
)
from rbmvmc.physics.xxz import XxzChain

__all__ = [
    "Basis",
    "FixedMagnetizationBasis",
    "FullBasis",
    "Hamiltonian",
    "SquareLattice",
    "TfimHamiltonian",
    "XxzChain",
    "build_nearest_neighbor_bonds",
    "chain_bonds",
    "dense_matrix",
    "diagonal_energy",
    "flip_spin",
    "local_energy",
    "magnetization",
    "magnetization_batch",
    "nearest_neighbor_correlator",
]
