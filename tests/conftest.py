from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from covid_distress.modeling import FitConfig
from covid_distress.preprocessing.constants import OUTCOME_COL

NAMED_PREDICTORS = ["anxiety", "rumination", "age", "news_exposure", "shoe_size"]


def make_synthetic(n: int = 1000, seed: int = 123, noise: float = 1.0) -> pd.DataFrame:
    """Five standard-normal predictors; only x1 and x2 move the outcome."""
    rng = np.random.default_rng(seed)
    X = rng.standard_normal((n, 5))
    y = 0.6 * X[:, 0] - 0.5 * X[:, 1] + noise * rng.standard_normal(n)
    df = pd.DataFrame(X, columns=[f"x{i}" for i in range(1, 6)])
    df[OUTCOME_COL] = y
    return df


def make_named(n: int = 300, seed: int = 7) -> pd.DataFrame:
    """Survey-like table: anxiety and rumination drive distress, the rest is noise."""
    rng = np.random.default_rng(seed)
    anxiety = rng.standard_normal(n)
    rumination = 0.4 * anxiety + rng.standard_normal(n)
    df = pd.DataFrame({
        "anxiety": anxiety,
        "rumination": rumination,
        "age": rng.standard_normal(n),
        "news_exposure": rng.standard_normal(n),
        "shoe_size": rng.standard_normal(n),
    })
    df[OUTCOME_COL] = 0.5 * anxiety + 0.3 * rumination + 0.8 * rng.standard_normal(n)
    return df


def make_items(n: int = 600, seed: int = 11, reverse=("item_4", "item_7", "item_10")) -> pd.DataFrame:
    """Twelve 1-5 Likert items: one general factor plus three groups of four."""
    rng = np.random.default_rng(seed)
    g = rng.standard_normal(n)
    groups = rng.standard_normal((n, 3))
    cols = {}
    for i in range(12):
        latent = 0.65 * g + 0.45 * groups[:, i // 4] + 0.6 * rng.standard_normal(n)
        cols[f"item_{i + 1}"] = np.clip(np.round(3 + 1.1 * latent), 1, 5)
    items = pd.DataFrame(cols)
    for col in reverse:
        items[col] = 6 - items[col]
    return items


@pytest.fixture
def synthetic_data() -> pd.DataFrame:
    return make_synthetic()


@pytest.fixture
def linear_data() -> pd.DataFrame:
    """Outcome is 2*x1 - x2 up to negligible noise."""
    rng = np.random.default_rng(5)
    df = pd.DataFrame(rng.standard_normal((200, 3)), columns=["x1", "x2", "x3"])
    df[OUTCOME_COL] = 2 * df["x1"] - df["x2"] + 1e-3 * rng.standard_normal(200)
    return df


@pytest.fixture
def named_data() -> pd.DataFrame:
    return make_named()


@pytest.fixture
def item_data() -> pd.DataFrame:
    return make_items()


@pytest.fixture
def fit_config() -> FitConfig:
    return FitConfig(seed=123, n_folds=5, n_workers=1, n_trees=50)
