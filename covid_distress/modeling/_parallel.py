"""
Fold fan-out over a scoped worker pool.

The pool lives only for the duration of one fitting call: joblib's
multiprocessing backend starts it when the ``Parallel`` context opens and
terminates it when the context closes, on normal exit and on error alike.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional, Sequence, TypeVar

from joblib import Parallel, delayed

T = TypeVar("T")
R = TypeVar("R")


@contextmanager
def fold_pool(n_workers: int) -> Iterator[Optional[Parallel]]:
    """Yield a pool of ``n_workers`` processes, or None for in-process execution."""
    if n_workers <= 1:
        yield None
        return
    with Parallel(n_jobs=n_workers, backend="multiprocessing", verbose=0) as parallel:
        yield parallel


def map_folds(func: Callable[[T], R], tasks: Sequence[T], n_workers: int) -> List[R]:
    """
    Apply ``func`` to every fold task and return results in task order.

    ``func`` must be a module-level function and each task must be picklable;
    every task carries its own copy of the rows it needs.
    """
    tasks = list(tasks)
    with fold_pool(min(n_workers, len(tasks))) as parallel:
        if parallel is None:
            return [func(task) for task in tasks]
        return list(parallel(delayed(func)(task) for task in tasks))
