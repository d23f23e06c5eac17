"""
Full-Data Refit
===============

Refits the predictor subset chosen by stepwise selection with ordinary least
squares on the entire observation table (train ∪ test). Cross-validation is
used only to choose the subset; reported coefficients come from this fit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from statsmodels.regression.linear_model import RegressionResultsWrapper

from covid_distress.errors import NonConvergent, require_columns
from covid_distress.preprocessing.constants import OUTCOME_COL
from covid_distress.utils import significance_band
from ._types import FittedModel, fit_ols


def extract_coefficients(
    model: RegressionResultsWrapper,
    predictors: Optional[Sequence[str]] = None,
    alpha: float = 0.05,
) -> pd.DataFrame:
    """
    Extract estimate, SE, t, p, CI and significance band per predictor.

    Args:
        model: Fitted statsmodels model
        predictors: Specific predictors to extract (default: all but intercept)

    Returns:
        DataFrame with one row per predictor
    """
    if predictors is None:
        predictors = [p for p in model.params.index if p != "const"]
    ci = model.conf_int(alpha=alpha)

    results = []
    for pred in predictors:
        if pred in model.params:
            results.append({
                'predictor': pred,
                'estimate': model.params[pred],
                'se': model.bse[pred],
                't': model.tvalues[pred],
                'p': model.pvalues[pred],
                'ci_low': ci.loc[pred, 0],
                'ci_high': ci.loc[pred, 1],
                'sig': significance_band(model.pvalues[pred]),
            })

    return pd.DataFrame(results, columns=['predictor', 'estimate', 'se', 't', 'p', 'ci_low', 'ci_high', 'sig'])


@dataclass(frozen=True)
class RefitResult:
    """Full-data OLS fit of the selected formula."""

    model: FittedModel
    coefficients: pd.DataFrame = field(repr=False, compare=False)
    n: int = 0
    r2: float = np.nan
    adj_r2: float = np.nan
    aic: float = np.nan

    @property
    def predictors(self):
        return self.model.predictors


def refit_full_data(
    data: pd.DataFrame,
    predictors: Sequence[str],
    outcome: str = OUTCOME_COL,
) -> RefitResult:
    """
    OLS of ``outcome`` on exactly ``predictors`` over every row of ``data``.

    Parameters
    ----------
    data : pd.DataFrame
        Full observation table
    predictors : sequence of str
        Predictor names selected during training (``StepwiseResult.selected``)
    outcome : str
        Outcome column

    Returns
    -------
    RefitResult
        Coefficient table excludes the intercept
    """
    predictors = list(predictors)
    if not predictors:
        raise NonConvergent(f"observation table: no selected predictors to refit for '{outcome}'")
    require_columns(data, [outcome] + predictors, table="observation table")

    df = data[[outcome] + predictors].dropna()
    res = fit_ols(df[outcome], df[predictors], table="observation table")
    model = FittedModel("full_data_ols", outcome, tuple(predictors), res)
    return RefitResult(
        model=model,
        coefficients=extract_coefficients(res),
        n=int(res.nobs),
        r2=float(res.rsquared),
        adj_r2=float(res.rsquared_adj),
        aic=float(res.aic),
    )
