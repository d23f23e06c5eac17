"""
Modeling
========

Cross-validated model fitting for the distress outcome.

Modules:
- stepwise: bidirectional AIC stepwise OLS under k-fold resampling
- benchmarks: random forest and lasso baselines on the same folds
- evaluation: held-out correlation / R² / RMSE / MAE
- refit: full-data OLS refit of the selected formula

Every fitting call takes an explicit ``FitConfig`` (seed, folds, pool size).
"""

from ._config import FitConfig, default_workers
from ._types import CVSummary, FittedModel, StepRecord, fit_ols
from .stepwise import StepwiseResult, fit_stepwise, stepwise_aic
from .benchmarks import (
    LassoResult,
    RandomForestResult,
    fit_lasso,
    fit_random_forest,
    lasso_path,
    rf_max_features_grid,
)
from .evaluation import EvaluationResult, evaluate_model, regression_metrics
from .refit import RefitResult, extract_coefficients, refit_full_data

__all__ = [
    "FitConfig",
    "default_workers",
    "CVSummary",
    "FittedModel",
    "StepRecord",
    "fit_ols",
    "StepwiseResult",
    "fit_stepwise",
    "stepwise_aic",
    "LassoResult",
    "RandomForestResult",
    "fit_lasso",
    "fit_random_forest",
    "lasso_path",
    "rf_max_features_grid",
    "EvaluationResult",
    "evaluate_model",
    "regression_metrics",
    "RefitResult",
    "extract_coefficients",
    "refit_full_data",
]
