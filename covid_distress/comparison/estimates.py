"""
Cross-validated vs Simple Estimates
===================================

For each predictor, sets the coefficient of the full-data refit of the
stepwise formula beside its marginal (simple) Pearson correlation with the
outcome, attaches a domain category, and flags whether the simple estimate
over- or under-states the adjusted one.

Join semantics: full outer join over every predictor in the observation
table, so each selected predictor has exactly one record and unselected
predictors carry only the simple side. The comparison set keeps records with
both estimates and a category; with ``keep_uncategorized=True`` selected
predictors missing from the lookup stay in as ``"uncategorized"``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from covid_distress.errors import InsufficientData, require_columns
from covid_distress.modeling.refit import RefitResult
from covid_distress.preprocessing.constants import OUTCOME_COL
from covid_distress.preprocessing.descriptives import pearson_with_ci
from covid_distress.utils import significance_band
from ._config import UNCATEGORIZED, PredictorInfo, get_category, get_label

OVER_ESTIMATE = "over_estimate"
UNDER_ESTIMATE = "under_estimate"


def classify_estimate(cv_estimate: float, simple_estimate: float) -> Optional[str]:
    """
    Compare magnitudes of same-signed estimates.

    ``over_estimate`` when the simple estimate is larger in magnitude than
    the cross-validated one, ``under_estimate`` when smaller. Opposite signs,
    zeros, equal magnitudes and missing values stay unclassified.
    """
    if pd.isna(cv_estimate) or pd.isna(simple_estimate):
        return None
    if np.sign(cv_estimate) == 0 or np.sign(cv_estimate) != np.sign(simple_estimate):
        return None
    if abs(cv_estimate) < abs(simple_estimate):
        return OVER_ESTIMATE
    if abs(cv_estimate) > abs(simple_estimate):
        return UNDER_ESTIMATE
    return None


def marginal_estimates(
    data: pd.DataFrame,
    predictors: Sequence[str],
    outcome: str = OUTCOME_COL,
) -> pd.DataFrame:
    """Pearson correlation test of each predictor against the outcome."""
    require_columns(data, [outcome] + list(predictors), table="observation table")
    rows = []
    for pred in predictors:
        res = pearson_with_ci(data[pred], data[outcome])
        if res["n"] < 4:
            raise InsufficientData(
                f"observation table: only {res['n']} complete rows for '{pred}' vs '{outcome}'"
            )
        rows.append({
            "predictor": pred,
            "simple_estimate": res["r"],
            "simple_ci_low": res["ci_low"],
            "simple_ci_high": res["ci_high"],
            "simple_p": res["p"],
            "simple_sig": significance_band(res["p"]),
            "simple_n": res["n"],
        })
    return pd.DataFrame(rows)


@dataclass(frozen=True)
class EstimateComparison:
    records: pd.DataFrame = field(repr=False)
    comparison: pd.DataFrame = field(repr=False)

    def counts(self) -> dict:
        flags = self.comparison["flag"].value_counts(dropna=True)
        return {
            OVER_ESTIMATE: int(flags.get(OVER_ESTIMATE, 0)),
            UNDER_ESTIMATE: int(flags.get(UNDER_ESTIMATE, 0)),
            "unclassified": int(self.comparison["flag"].isna().sum()),
        }


def compare_estimates(
    refit: RefitResult,
    data: pd.DataFrame,
    outcome: str = OUTCOME_COL,
    lookup: Optional[Mapping[str, PredictorInfo]] = None,
    keep_uncategorized: bool = False,
    predictors: Optional[Sequence[str]] = None,
) -> EstimateComparison:
    """
    Build per-predictor estimate records and the final comparison set.

    Parameters
    ----------
    refit : RefitResult
        Full-data fit of the stepwise formula
    data : pd.DataFrame
        Full observation table
    lookup : mapping, optional
        Predictor -> PredictorInfo (default: ``PREDICTOR_LOOKUP``)
    keep_uncategorized : bool
        Retain selected predictors missing from the lookup
    predictors : sequence of str, optional
        Simple-estimate side (default: every non-outcome column)

    Returns
    -------
    EstimateComparison
        ``records`` (outer join) and ``comparison`` (filtered set)
    """
    if predictors is None:
        predictors = [c for c in data.columns if c != outcome]
    predictors = list(dict.fromkeys(list(predictors) + list(refit.predictors)))

    cv = refit.coefficients.rename(columns={
        "estimate": "cv_estimate",
        "se": "cv_se",
        "t": "cv_t",
        "p": "cv_p",
        "ci_low": "cv_ci_low",
        "ci_high": "cv_ci_high",
        "sig": "cv_sig",
    })
    simple = marginal_estimates(data, predictors, outcome)

    records = simple.merge(cv, on="predictor", how="outer")
    records["selected"] = records["predictor"].isin(refit.predictors)
    records["category"] = records["predictor"].map(lambda p: get_category(p, lookup))
    records["label"] = records["predictor"].map(lambda p: get_label(p, lookup))
    records["flag"] = [
        classify_estimate(c, s) for c, s in zip(records["cv_estimate"], records["simple_estimate"])
    ]
    if keep_uncategorized:
        records.loc[records["selected"] & records["category"].isna(), "category"] = UNCATEGORIZED

    both = records["cv_estimate"].notna() & records["simple_estimate"].notna()
    comparison = records[both & records["category"].notna()].copy()
    comparison = comparison.sort_values("cv_estimate", ascending=False).reset_index(drop=True)
    records = records.sort_values(["selected", "predictor"], ascending=[False, True]).reset_index(drop=True)
    return EstimateComparison(records=records, comparison=comparison)
