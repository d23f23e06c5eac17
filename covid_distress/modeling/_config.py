"""
Fitting configuration passed explicitly into every model-fitting call.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field

import numpy as np
from sklearn.model_selection import KFold

from covid_distress.preprocessing.constants import DEFAULT_N_FOLDS, DEFAULT_N_TREES, DEFAULT_SEED


def default_workers() -> int:
    """Available cores minus one, never below one."""
    return max(1, (os.cpu_count() or 1) - 1)


@dataclass(frozen=True)
class FitConfig:
    """
    Resampling and resource settings for one fitting call.

    Attributes
    ----------
    seed : int
        Seeds fold assignment and every estimator's own randomness.
    n_folds : int
        Number of cross-validation folds.
    n_workers : int
        Size of the process pool used to fan out folds (1 = in-process).
    n_trees : int
        Random-forest ensemble size.
    """

    seed: int = DEFAULT_SEED
    n_folds: int = DEFAULT_N_FOLDS
    n_workers: int = field(default_factory=default_workers)
    n_trees: int = DEFAULT_N_TREES

    def __post_init__(self):
        if self.n_folds < 2:
            raise ValueError(f"n_folds must be >= 2, got {self.n_folds}")
        if self.n_workers < 1:
            raise ValueError(f"n_workers must be >= 1, got {self.n_workers}")

    def folds(self, n_rows: int) -> list[tuple]:
        """Deterministic (train, held-out) positional index pairs."""
        kf = KFold(n_splits=self.n_folds, shuffle=True, random_state=self.seed)
        return list(kf.split(np.arange(n_rows)))
