from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


def parallel_map(fn: Callable[[T], R], items: Sequence[T], n_workers: int = 1) -> list[R]:
    """Map ``fn`` over ``items`` and return results in input order.

    Work items must not mutate shared state. Results are gathered by index so
    any reduction over the returned list sums in a fixed order regardless of
    ``n_workers``.
    """

    if n_workers < 1:
        raise ValueError("n_workers must be >= 1")
    if n_workers == 1 or len(items) < 2:
        return [fn(item) for item in items]

    with ThreadPoolExecutor(max_workers=n_workers) as executor:
        return list(executor.map(fn, items))
