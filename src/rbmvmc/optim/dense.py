from __future__ import annotations

import numpy as np

from rbmvmc.types import ScalarArray


def solve_cholesky(matrix: ScalarArray, rhs: ScalarArray, shift: float = 0.0) -> ScalarArray:
    """Solve ``(matrix + shift I) x = rhs`` through an ``L L^H`` factorisation.

    ``numpy.linalg.LinAlgError`` propagates when the shifted matrix is not
    positive definite.
    """

    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise ValueError("matrix must be square")
    if rhs.shape != (matrix.shape[0],):
        raise ValueError(f"rhs shape mismatch: expected {(matrix.shape[0],)}, received {rhs.shape}")

    shifted = matrix + shift * np.eye(matrix.shape[0], dtype=matrix.dtype)
    lower = np.linalg.cholesky(shifted)
    y = np.linalg.solve(lower, rhs)
    return np.linalg.solve(lower.conj().T, y)
