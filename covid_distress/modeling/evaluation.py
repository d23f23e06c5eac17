"""
Held-out Evaluation
===================

Applies a fitted model to test rows and reports prediction-vs-observed
correlation, R² (= correlation²), RMSE and MAE. The model is only read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

import numpy as np
import pandas as pd
from scipy import stats
from sklearn.metrics import mean_absolute_error, mean_squared_error

from covid_distress.errors import InsufficientData, require_columns
from ._types import FittedModel


def regression_metrics(y_true, y_pred) -> Dict[str, float]:
    """
    Correlation, R², RMSE and MAE of predictions against observations.

    Correlation (and therefore R²) is NaN when either side is constant, e.g.
    an intercept-only model.
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    if len(y_true) >= 2 and np.std(y_true) > 0 and np.std(y_pred) > 0:
        r = float(stats.pearsonr(y_true, y_pred).statistic)
    else:
        r = np.nan
    return {
        "correlation": r,
        "r2": r * r if np.isfinite(r) else np.nan,
        "rmse": float(np.sqrt(mean_squared_error(y_true, y_pred))),
        "mae": float(mean_absolute_error(y_true, y_pred)),
        "n": int(len(y_true)),
    }


@dataclass(frozen=True)
class EvaluationResult:
    """Test-split performance of one model."""

    model_name: str
    n: int
    correlation: float
    r2: float
    rmse: float
    mae: float
    predictions: pd.DataFrame = field(repr=False, compare=False)

    def as_dict(self, prefix: str = "test_") -> Dict[str, float]:
        return {
            f"{prefix}n": self.n,
            f"{prefix}correlation": self.correlation,
            f"{prefix}r2": self.r2,
            f"{prefix}rmse": self.rmse,
            f"{prefix}mae": self.mae,
        }


def evaluate_model(model: FittedModel, test: pd.DataFrame) -> EvaluationResult:
    """
    Evaluate ``model`` on disjoint test rows.

    Parameters
    ----------
    model : FittedModel
        Any fitted model (stepwise, random forest, lasso, refit)
    test : pd.DataFrame
        Held-out rows carrying the model's predictors and outcome

    Returns
    -------
    EvaluationResult
        Metrics plus an ``observed``/``predicted`` table indexed like ``test``
    """
    model.check_schema(test)
    require_columns(test, [model.outcome], table="test rows")
    if len(test) < 2:
        raise InsufficientData(f"test rows: n={len(test)} is too few to evaluate '{model.name}'")

    predicted = model.predict(test)
    observed = test[model.outcome].to_numpy(dtype=float)
    metrics = regression_metrics(observed, predicted)
    predictions = pd.DataFrame({"observed": observed, "predicted": predicted}, index=test.index)
    return EvaluationResult(
        model_name=model.name,
        n=metrics["n"],
        correlation=metrics["correlation"],
        r2=metrics["r2"],
        rmse=metrics["rmse"],
        mae=metrics["mae"],
        predictions=predictions,
    )
