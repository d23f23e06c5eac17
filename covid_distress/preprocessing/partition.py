"""
Train/Test Partitioning
=======================

Seeded, outcome-stratified split of the observation table. The continuous
outcome is cut into quantile bins and rows are drawn within each bin, so the
outcome distribution is approximately preserved in both halves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from covid_distress.errors import InsufficientData, InvalidFraction, require_columns
from .constants import (
    DEFAULT_SEED,
    DEFAULT_TRAIN_FRACTION,
    MIN_ROWS_PER_BIN,
    OUTCOME_COL,
    STRATIFY_BINS,
)


@dataclass(frozen=True)
class Partition:
    """Disjoint train/test row labels of one observation table."""

    train_index: Tuple
    test_index: Tuple
    seed: int
    fraction: float

    def train(self, df: pd.DataFrame) -> pd.DataFrame:
        return df.loc[list(self.train_index)].copy()

    def test(self, df: pd.DataFrame) -> pd.DataFrame:
        return df.loc[list(self.test_index)].copy()

    @property
    def n(self) -> int:
        return len(self.train_index) + len(self.test_index)

    def to_frame(self) -> pd.DataFrame:
        """Long-format membership table (row label, split)."""
        return pd.DataFrame({
            "row": list(self.train_index) + list(self.test_index),
            "split": ["train"] * len(self.train_index) + ["test"] * len(self.test_index),
        }).sort_values("row").reset_index(drop=True)


def outcome_bins(y: pd.Series, n_bins: int = STRATIFY_BINS) -> np.ndarray:
    """Quantile bin codes of a continuous outcome (ties collapse bins)."""
    return pd.qcut(y, q=n_bins, labels=False, duplicates="drop").to_numpy()


def stratified_partition(
    df: pd.DataFrame,
    outcome: str = OUTCOME_COL,
    p: float = DEFAULT_TRAIN_FRACTION,
    seed: int = DEFAULT_SEED,
    n_bins: int = STRATIFY_BINS,
) -> Partition:
    """
    Split ``df`` into train/test row sets stratified on ``outcome``.

    Parameters
    ----------
    df : pd.DataFrame
        Observation table
    outcome : str
        Outcome column used for stratification
    p : float
        Target train fraction, strictly between 0 and 1
    seed : int
        Random seed; the same seed and table give the same partition
    n_bins : int
        Number of outcome quantile groups

    Returns
    -------
    Partition
        ``|train| == floor(p * n)``; ``train ∪ test`` covers every row once
    """
    if not (0.0 < p < 1.0):
        raise InvalidFraction(f"train fraction must lie in (0, 1), got {p!r}")
    require_columns(df, [outcome], table="observation table")

    y = df[outcome]
    if y.isna().any():
        raise InsufficientData(
            f"observation table: outcome '{outcome}' has {int(y.isna().sum())} missing values"
        )

    n = len(df)
    n_train = int(np.floor(p * n))
    n_test = n - n_train
    if n < n_bins * MIN_ROWS_PER_BIN:
        raise InsufficientData(
            f"observation table: n={n} too small to stratify into {n_bins} outcome bins"
        )

    bins = outcome_bins(y, n_bins)
    if np.isnan(bins).any() or len(np.unique(bins)) < 2:
        raise InsufficientData(
            f"observation table: outcome '{outcome}' has too few distinct values to stratify"
        )
    n_groups = len(np.unique(bins))
    smallest = int(np.bincount(bins.astype(int)).min())
    if smallest < MIN_ROWS_PER_BIN or min(n_train, n_test) < n_groups:
        raise InsufficientData(
            f"observation table: n={n}, p={p} leaves too few rows per outcome bin "
            f"(smallest bin={smallest}, train={n_train}, test={n_test}, bins={n_groups})"
        )

    train_idx, test_idx = train_test_split(
        df.index.to_numpy(),
        train_size=n_train,
        test_size=n_test,
        stratify=bins,
        random_state=seed,
        shuffle=True,
    )
    return Partition(
        train_index=tuple(sorted(train_idx.tolist())),
        test_index=tuple(sorted(test_idx.tolist())),
        seed=seed,
        fraction=p,
    )
