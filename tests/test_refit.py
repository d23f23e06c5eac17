from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from covid_distress.errors import MissingColumn, NonConvergent, SingularFit
from covid_distress.modeling import extract_coefficients, fit_stepwise, refit_full_data
from covid_distress.preprocessing import stratified_partition
from covid_distress.preprocessing.constants import OUTCOME_COL

pytestmark = pytest.mark.unit


def test_refit_uses_exactly_selected_predictors(synthetic_data, fit_config) -> None:
    part = stratified_partition(synthetic_data)
    step = fit_stepwise(part.train(synthetic_data), OUTCOME_COL, config=fit_config)
    refit = refit_full_data(synthetic_data, step.selected, OUTCOME_COL)

    assert set(refit.coefficients["predictor"]) == set(step.selected)
    assert "const" not in set(refit.coefficients["predictor"])
    assert refit.n == len(synthetic_data)
    assert refit.predictors == step.selected


def test_coefficient_table_columns(synthetic_data) -> None:
    refit = refit_full_data(synthetic_data, ["x1", "x2"])
    coefs = refit.coefficients.set_index("predictor")
    assert list(refit.coefficients.columns) == ["predictor", "estimate", "se", "t", "p", "ci_low", "ci_high", "sig"]
    assert coefs.loc["x1", "estimate"] == pytest.approx(0.6, abs=0.1)
    assert coefs.loc["x2", "estimate"] == pytest.approx(-0.5, abs=0.1)
    assert coefs.loc["x1", "t"] == pytest.approx(coefs.loc["x1", "estimate"] / coefs.loc["x1", "se"])
    assert (coefs["sig"] == "***").all()
    assert 0 < refit.adj_r2 < refit.r2 < 1


def test_extract_coefficients_subset(synthetic_data) -> None:
    refit = refit_full_data(synthetic_data, ["x1", "x2", "x3"])
    table = extract_coefficients(refit.model.estimator, predictors=["x2"])
    assert list(table["predictor"]) == ["x2"]


def test_collinear_predictors_raise_singular_fit(synthetic_data) -> None:
    df = synthetic_data.copy()
    df["x6"] = df["x1"] + df["x2"]
    with pytest.raises(SingularFit, match="x6"):
        refit_full_data(df, ["x1", "x2", "x6"])


def test_empty_selection_cannot_be_refit(synthetic_data) -> None:
    with pytest.raises(NonConvergent):
        refit_full_data(synthetic_data, [])


def test_missing_selected_column(synthetic_data) -> None:
    with pytest.raises(MissingColumn):
        refit_full_data(synthetic_data, ["x1", "anxiety"])


def test_stepwise_raises_on_collinear_pool(fit_config) -> None:
    rng = np.random.default_rng(1)
    df = pd.DataFrame(rng.standard_normal((100, 2)), columns=["a", "b"])
    df["c"] = 2 * df["a"]
    df[OUTCOME_COL] = df["a"] + rng.standard_normal(100)
    with pytest.raises(SingularFit):
        fit_stepwise(df, OUTCOME_COL, config=fit_config)
