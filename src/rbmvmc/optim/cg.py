from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from rbmvmc.types import FloatArray, ScalarArray

# p^H A p below this is treated as a breakdown of the Krylov recursion
_BREAKDOWN = 1.0e-20


@dataclass(frozen=True)
class CgResult:
    """Conjugate-gradient solution diagnostics."""

    solution: ScalarArray
    converged: bool
    iterations: int
    residual_norm: float
    residual_history: FloatArray


def _norm_sq(vector: ScalarArray) -> float:
    return float(np.real(np.vdot(vector, vector)))


def solve_cg(
    matvec: Callable[[ScalarArray], ScalarArray],
    rhs: ScalarArray,
    rtol: float,
    max_iterations: int,
    x0: ScalarArray | None = None,
) -> CgResult:
    """Matrix-free conjugate gradient for Hermitian positive-definite systems.

    Stops once ``|r| <= rtol * max(|rhs|, 1)``. Non-convergence is not an
    error: ``converged`` is ``False`` and the last iterate is returned together
    with its residual norm.
    """

    if rhs.ndim != 1:
        raise ValueError("rhs must be rank-1")
    if rtol <= 0.0:
        raise ValueError("rtol must be positive")
    if max_iterations < 1:
        raise ValueError("max_iterations must be >= 1")

    solution = np.zeros_like(rhs) if x0 is None else np.array(x0, dtype=rhs.dtype, copy=True)
    residual = rhs - matvec(solution)
    direction = residual.copy()
    rr = _norm_sq(residual)

    target = rtol * max(float(np.linalg.norm(rhs)), 1.0)
    history = [np.sqrt(rr)]
    converged = history[0] <= target
    n_iter = 0

    while not converged and n_iter < max_iterations:
        n_iter += 1
        a_direction = matvec(direction)
        curvature = float(np.real(np.vdot(direction, a_direction)))
        if abs(curvature) < _BREAKDOWN:
            break

        step = rr / curvature
        solution = solution + step * direction
        residual = residual - step * a_direction

        rr_next = _norm_sq(residual)
        history.append(np.sqrt(rr_next))
        converged = history[-1] <= target

        direction = residual + (rr_next / rr) * direction
        rr = rr_next

    return CgResult(
        solution=solution,
        converged=bool(converged),
        iterations=n_iter,
        residual_norm=float(np.sqrt(rr)),
        residual_history=np.asarray(history, dtype=np.float64),
    )
