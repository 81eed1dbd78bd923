from rbmvmc.nqs.parameterization import (
    FlatParameterLayout,
    ParameterSlice,
    build_layout,
    flatten_with_layout,
    unflatten_with_layout,
)
from rbmvmc.nqs.rbm import RbmMachine, log_cosh
from rbmvmc.nqs.serialization import decode_machine, encode_machine, load_machine, save_machine
from rbmvmc.nqs.state import RbmState, RbmStateRef
from rbmvmc.nqs.wavefunction import full_psi, index_to_sigma, sigma_to_index

__all__ = [
    "FlatParameterLayout",
    "ParameterSlice",
    "RbmMachine",
    "RbmState",
    "RbmStateRef",
    "build_layout",
    "decode_machine",
    "encode_machine",
    "flatten_with_layout",
    "full_psi",
    "index_to_sigma",
    "load_machine",
    "log_cosh",
    "save_machine",
    "sigma_to_index",
    "unflatten_with_layout",
]
