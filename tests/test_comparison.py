from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from covid_distress.comparison import (
    OVER_ESTIMATE,
    PREDICTOR_LOOKUP,
    UNDER_ESTIMATE,
    PredictorInfo,
    classify_estimate,
    compare_estimates,
    get_category,
    get_label,
    marginal_estimates,
)
from covid_distress.errors import InsufficientData
from covid_distress.modeling import refit_full_data
from covid_distress.preprocessing.constants import OUTCOME_COL

pytestmark = pytest.mark.unit

SELECTED = ["anxiety", "rumination", "shoe_size"]


@pytest.mark.parametrize(
    "cv, simple, flag",
    [
        (0.1, 0.3, OVER_ESTIMATE),
        (0.2, 0.4, OVER_ESTIMATE),
        (-0.2, -0.4, OVER_ESTIMATE),
        (0.5, 0.2, UNDER_ESTIMATE),
        (0.5, 0.3, UNDER_ESTIMATE),
        (-0.5, -0.3, UNDER_ESTIMATE),
        (0.3, -0.3, None),
        (-0.1, 0.4, None),
        (0.3, 0.3, None),
        (0.0, 0.2, None),
        (np.nan, 0.2, None),
    ],
)
def test_classify_estimate(cv, simple, flag) -> None:
    assert classify_estimate(cv, simple) == flag


def test_lookup_is_static_mapping() -> None:
    assert get_category("anxiety") == "mental-health"
    assert get_category("news_exposure") == "media"
    assert get_category("shoe_size") is None
    assert get_label("rumination") == "Rumination"
    assert get_label("shoe_size") == "shoe_size"
    assert all(isinstance(v, PredictorInfo) for v in PREDICTOR_LOOKUP.values())


def test_marginal_estimates_match_correlation(named_data) -> None:
    table = marginal_estimates(named_data, ["anxiety", "age"], OUTCOME_COL).set_index("predictor")
    r = named_data["anxiety"].corr(named_data[OUTCOME_COL])
    assert table.loc["anxiety", "simple_estimate"] == pytest.approx(r)
    assert table.loc["anxiety", "simple_ci_low"] < r < table.loc["anxiety", "simple_ci_high"]
    assert table.loc["anxiety", "simple_sig"] == "***"
    assert table.loc["anxiety", "simple_n"] == len(named_data)


def test_marginal_estimates_need_rows(named_data) -> None:
    with pytest.raises(InsufficientData):
        marginal_estimates(named_data.head(3), ["anxiety"], OUTCOME_COL)


def test_records_are_outer_join_over_all_predictors(named_data) -> None:
    refit = refit_full_data(named_data, SELECTED)
    result = compare_estimates(refit, named_data)
    records = result.records.set_index("predictor")

    assert set(records.index) == set(named_data.columns) - {OUTCOME_COL}
    assert records.index.is_unique
    assert records["selected"].sum() == len(SELECTED)
    assert np.isnan(records.loc["age", "cv_estimate"])
    assert not np.isnan(records.loc["age", "simple_estimate"])


def test_uncategorized_predictors_are_dropped_by_default(named_data) -> None:
    refit = refit_full_data(named_data, SELECTED)
    comparison = compare_estimates(refit, named_data).comparison
    assert set(comparison["predictor"]) == {"anxiety", "rumination"}
    assert comparison["cv_estimate"].is_monotonic_decreasing
    assert set(comparison["category"]) == {"mental-health", "emotion-regulation"}


def test_uncategorized_predictors_can_be_kept(named_data) -> None:
    refit = refit_full_data(named_data, SELECTED)
    comparison = compare_estimates(refit, named_data, keep_uncategorized=True).comparison
    assert set(comparison["predictor"]) == set(SELECTED)
    row = comparison.set_index("predictor").loc["shoe_size"]
    assert row["category"] == "uncategorized"
    assert row["label"] == "shoe_size"


def test_custom_lookup_overrides_default(named_data) -> None:
    lookup = {"shoe_size": PredictorInfo("demographic", "Shoe size")}
    refit = refit_full_data(named_data, SELECTED)
    comparison = compare_estimates(refit, named_data, lookup=lookup).comparison
    assert list(comparison["predictor"]) == ["shoe_size"]
    assert comparison.iloc[0]["label"] == "Shoe size"


def test_flags_follow_classification(named_data) -> None:
    refit = refit_full_data(named_data, SELECTED)
    result = compare_estimates(refit, named_data, keep_uncategorized=True)
    for _, row in result.comparison.iterrows():
        expected = classify_estimate(row["cv_estimate"], row["simple_estimate"])
        assert row["flag"] == expected if expected else pd.isna(row["flag"])
    counts = result.counts()
    assert sum(counts.values()) == len(result.comparison)
