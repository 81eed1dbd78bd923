from __future__ import annotations

import struct
from pathlib import Path
from typing import BinaryIO

import numpy as np

from rbmvmc.nqs.rbm import RbmMachine
from rbmvmc.utils.io import ensure_dir

MAGIC: bytes = b"RBMQ"
VERSION: int = 1

_HEADER = struct.Struct("<4sHBBII")
_LENGTH = struct.Struct("<Q")

_DTYPE_CODES: dict[str, int] = {"float64": 0, "complex128": 1}
_CODE_DTYPES: dict[int, np.dtype] = {0: np.dtype("<f8"), 1: np.dtype("<c16")}
_MACHINE_DTYPES: dict[int, type] = {0: np.float64, 1: np.complex128}


def encode_machine(machine: RbmMachine) -> bytes:
    """Serialize a parameter store into the versioned ``RBMQ`` record."""

    code = _DTYPE_CODES[machine.dtype.name]
    wire = _CODE_DTYPES[code]
    chunks = [
        _HEADER.pack(
            MAGIC,
            VERSION,
            code,
            int(machine.use_bias),
            machine.n_visible,
            machine.n_hidden,
        )
    ]

    arrays = [machine.w]
    if machine.use_bias:
        arrays += [machine.a, machine.b]
    for array in arrays:
        flat = np.ascontiguousarray(array, dtype=wire).reshape(-1)
        chunks.append(_LENGTH.pack(flat.size))
        chunks.append(flat.tobytes())
    return b"".join(chunks)


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    payload = stream.read(size)
    if len(payload) != size:
        raise ValueError(f"truncated RBMQ record while reading {what}")
    return payload


def _read_array(stream: BinaryIO, wire: np.dtype, expected: int, what: str) -> np.ndarray:
    (count,) = _LENGTH.unpack(_read_exact(stream, _LENGTH.size, f"{what} length"))
    if count != expected:
        raise ValueError(f"{what} length mismatch: expected {expected}, received {count}")
    raw = _read_exact(stream, count * wire.itemsize, what)
    return np.frombuffer(raw, dtype=wire).copy()


def decode_machine(stream: BinaryIO) -> RbmMachine:
    """Rebuild a parameter store by sequentially reading an ``RBMQ`` record."""

    header = _read_exact(stream, _HEADER.size, "header")
    magic, version, code, use_bias, n_visible, n_hidden = _HEADER.unpack(header)
    if magic != MAGIC:
        raise ValueError(f"bad magic {magic!r}; not an RBMQ record")
    if version != VERSION:
        raise ValueError(f"unsupported RBMQ version {version}")
    if code not in _CODE_DTYPES:
        raise ValueError(f"unknown dtype code {code}")

    wire = _CODE_DTYPES[code]
    machine = RbmMachine(n_visible, n_hidden, use_bias=bool(use_bias), dtype=_MACHINE_DTYPES[code])

    w = _read_array(stream, wire, n_visible * n_hidden, "w")
    machine.set_w(w.reshape(n_hidden, n_visible))
    if use_bias:
        machine.set_a(_read_array(stream, wire, n_visible, "a"))
        machine.set_b(_read_array(stream, wire, n_hidden, "b"))
    return machine


def save_machine(path: Path, machine: RbmMachine) -> None:
    ensure_dir(path.parent)
    with path.open("wb") as f:
        f.write(encode_machine(machine))


def load_machine(path: Path) -> RbmMachine:
    with path.open("rb") as f:
        return decode_machine(f)
