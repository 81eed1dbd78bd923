from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from rbmvmc.types import ScalarArray


@dataclass(frozen=True)
class ParameterSlice:
    """Slice metadata for flatten/unflatten operations."""

    name: str
    start: int
    stop: int
    shape: tuple[int, ...]
    transpose: bool = False


@dataclass(frozen=True)
class FlatParameterLayout:
    """Fixed-order layout mapping between tensors and flat SR vectors."""

    slices: tuple[ParameterSlice, ...]

    @property
    def size(self) -> int:
        return int(sum(s.stop - s.start for s in self.slices))

    def slice_of(self, name: str) -> ParameterSlice:
        for sl in self.slices:
            if sl.name == name:
                return sl
        raise KeyError(name)


def build_layout(
    shapes: list[tuple[str, tuple[int, ...]]],
    transposed: frozenset[str] = frozenset(),
) -> FlatParameterLayout:
    """Create a layout that keeps the order in which tensors are listed.

    Names in ``transposed`` are packed from their transpose, so a ``(rows, cols)``
    matrix is laid out with its column index running slowest.
    """

    slices: list[ParameterSlice] = []
    cursor = 0
    for name, shape in shapes:
        length = int(np.prod(shape))
        slices.append(
            ParameterSlice(
                name=name,
                start=cursor,
                stop=cursor + length,
                shape=shape,
                transpose=name in transposed,
            )
        )
        cursor += length
    return FlatParameterLayout(tuple(slices))


def flatten_with_layout(
    named_arrays: dict[str, ScalarArray],
    layout: FlatParameterLayout,
    dtype: np.dtype | type = np.float64,
) -> ScalarArray:
    """Pack named parameter tensors into a single contiguous vector."""

    flat = np.zeros(layout.size, dtype=dtype)
    for sl in layout.slices:
        data = named_arrays[sl.name]
        if sl.transpose:
            data = data.T
        flat[sl.start : sl.stop] = data.reshape(-1)
    return flat


def unflatten_with_layout(
    vector: ScalarArray,
    layout: FlatParameterLayout,
) -> dict[str, ScalarArray]:
    """Unpack a flat vector back into tensor dictionary format."""

    if vector.ndim != 1:
        raise ValueError("vector must be rank-1")
    if vector.shape[0] != layout.size:
        raise ValueError(
            f"vector length {vector.shape[0]} does not match layout size {layout.size}"
        )

    out: dict[str, ScalarArray] = {}
    for sl in layout.slices:
        chunk = vector[sl.start : sl.stop]
        if sl.transpose:
            out[sl.name] = np.array(chunk.reshape(sl.shape[::-1]).T)
        else:
            out[sl.name] = np.array(chunk.reshape(sl.shape))
    return out
