"""
Result containers shared by the fitters, the evaluator and the refitter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.regression.linear_model import RegressionResultsWrapper

from covid_distress.errors import DimensionMismatch, SingularFit

METRIC_COLUMNS = ["rmse", "r2", "mae"]


def design_frame(X: pd.DataFrame) -> pd.DataFrame:
    """Predictor frame with a leading intercept column named ``const``."""
    design = X.astype(float).copy()
    design.insert(0, "const", 1.0)
    return design


def fit_ols(y: pd.Series, X: pd.DataFrame, table: str = "training rows") -> RegressionResultsWrapper:
    """
    OLS fit of ``y`` on ``X`` plus intercept.

    Raises SingularFit when the design matrix is rank deficient instead of
    silently returning a pseudo-inverse solution.
    """
    design = design_frame(X)
    rank = np.linalg.matrix_rank(design.to_numpy())
    if rank < design.shape[1]:
        raise SingularFit(
            f"{table}: design matrix rank {rank} < {design.shape[1]} columns "
            f"(collinear predictors among {list(X.columns)})"
        )
    return sm.OLS(y.astype(float), design).fit()


@dataclass(frozen=True)
class StepRecord:
    """One accepted move of the stepwise search."""

    step: int
    action: str  # "start", "add" or "remove"
    predictor: Optional[str]
    aic: float
    n_predictors: int


@dataclass(frozen=True)
class CVSummary:
    """Mean and SD of held-out metrics across folds, plus the per-fold table."""

    rmse: float
    r2: float
    mae: float
    rmse_sd: float
    r2_sd: float
    mae_sd: float
    n_folds: int
    folds: pd.DataFrame = field(repr=False, compare=False)

    @classmethod
    def from_folds(cls, folds: pd.DataFrame) -> "CVSummary":
        mean = folds[METRIC_COLUMNS].mean()
        sd = folds[METRIC_COLUMNS].std(ddof=1)
        return cls(
            rmse=float(mean["rmse"]),
            r2=float(mean["r2"]),
            mae=float(mean["mae"]),
            rmse_sd=float(sd["rmse"]),
            r2_sd=float(sd["r2"]),
            mae_sd=float(sd["mae"]),
            n_folds=int(len(folds)),
            folds=folds.reset_index(drop=True),
        )

    def as_dict(self, prefix: str = "cv_") -> Dict[str, float]:
        return {
            f"{prefix}rmse": self.rmse,
            f"{prefix}rmse_sd": self.rmse_sd,
            f"{prefix}r2": self.r2,
            f"{prefix}r2_sd": self.r2_sd,
            f"{prefix}mae": self.mae,
            f"{prefix}mae_sd": self.mae_sd,
        }


@dataclass(frozen=True)
class FittedModel:
    """
    A learned model bound to the predictors it was trained on.

    ``estimator`` is either a statsmodels OLS result (stepwise / refit) or a
    fitted scikit-learn regressor (benchmarks). Never mutated after creation.
    """

    name: str
    outcome: str
    predictors: Tuple[str, ...]
    estimator: Any
    cv: Optional[CVSummary] = None

    @property
    def formula(self) -> str:
        rhs = " + ".join(self.predictors) if self.predictors else "1"
        return f"{self.outcome} ~ {rhs}"

    def check_schema(self, df: pd.DataFrame, table: str = "test rows") -> None:
        missing = [c for c in self.predictors if c not in df.columns]
        if missing:
            raise DimensionMismatch(
                f"{table}: model '{self.name}' expects predictors {list(self.predictors)}; "
                f"missing {missing}"
            )

    def predict(self, df: pd.DataFrame) -> np.ndarray:
        self.check_schema(df)
        X = df.loc[:, list(self.predictors)]
        if isinstance(self.estimator, RegressionResultsWrapper):
            return np.asarray(self.estimator.predict(design_frame(X)), dtype=float)
        return np.asarray(self.estimator.predict(X.to_numpy(dtype=float)), dtype=float)


def fold_frame(rows: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """Per-fold metrics table sorted by fold number."""
    return pd.DataFrame(list(rows)).sort_values("fold").reset_index(drop=True)
