from __future__ import annotations


def geometric_decay(step: int, initial_value: float, factor: float) -> float:
    """Geometric decay schedule for the SR diagonal shift."""

    if step < 0:
        raise ValueError("step must be non-negative")
    if factor <= 0.0:
        raise ValueError("factor must be > 0")
    return initial_value * (factor ** step)


def diagonal_shift(step: int, lambda_max: float, decay: float, lambda_min: float) -> float:
    """``max(lambda_max * decay**step, lambda_min)``; stays strictly positive."""

    if lambda_min <= 0.0:
        raise ValueError("lambda_min must be > 0")
    return max(geometric_decay(step, lambda_max, decay), lambda_min)
