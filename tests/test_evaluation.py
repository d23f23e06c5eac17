from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from covid_distress.errors import DimensionMismatch, InsufficientData
from covid_distress.modeling import evaluate_model, fit_lasso, fit_stepwise, regression_metrics
from covid_distress.preprocessing import stratified_partition
from covid_distress.preprocessing.constants import OUTCOME_COL

pytestmark = pytest.mark.unit


def test_regression_metrics_by_hand() -> None:
    y = np.array([1.0, 2.0, 3.0, 4.0])
    pred = np.array([1.5, 2.0, 2.5, 5.0])
    m = regression_metrics(y, pred)
    assert m["rmse"] == pytest.approx(np.sqrt((0.25 + 0 + 0.25 + 1.0) / 4))
    assert m["mae"] == pytest.approx((0.5 + 0 + 0.5 + 1.0) / 4)
    assert m["r2"] == pytest.approx(m["correlation"] ** 2)
    assert m["n"] == 4


def test_constant_predictions_have_no_correlation() -> None:
    m = regression_metrics([1.0, 2.0, 3.0], [2.0, 2.0, 2.0])
    assert np.isnan(m["correlation"])
    assert np.isnan(m["r2"])
    assert m["rmse"] == pytest.approx(np.sqrt(2 / 3))


def test_near_exact_linear_outcome(linear_data, fit_config) -> None:
    part = stratified_partition(linear_data, seed=fit_config.seed)
    train, test = part.train(linear_data), part.test(linear_data)
    result = fit_stepwise(train, OUTCOME_COL, config=fit_config)

    coefs = result.model.estimator.params
    assert coefs["x1"] > 0
    assert coefs["x2"] < 0

    ev = evaluate_model(result.model, test)
    assert ev.r2 > 0.99
    assert ev.correlation > 0.99
    assert ev.n == len(test)
    assert list(ev.predictions.index) == list(test.index)
    assert ev.as_dict()["test_rmse"] == ev.rmse


def test_evaluation_does_not_mutate_inputs(linear_data, fit_config) -> None:
    part = stratified_partition(linear_data, seed=fit_config.seed)
    train, test = part.train(linear_data), part.test(linear_data)
    result = fit_stepwise(train, OUTCOME_COL, config=fit_config)
    params = result.model.estimator.params.copy()
    before = test.copy()

    evaluate_model(result.model, test)
    pd.testing.assert_frame_equal(test, before)
    pd.testing.assert_series_equal(result.model.estimator.params, params)


def test_schema_mismatch(linear_data, fit_config) -> None:
    result = fit_stepwise(linear_data, OUTCOME_COL, config=fit_config)
    with pytest.raises(DimensionMismatch, match="x1"):
        evaluate_model(result.model, linear_data.drop(columns=["x1"]))


def test_sklearn_models_evaluate_too(linear_data, fit_config) -> None:
    part = stratified_partition(linear_data, seed=fit_config.seed)
    lasso = fit_lasso(part.train(linear_data), OUTCOME_COL, config=fit_config)
    ev = evaluate_model(lasso.model, part.test(linear_data))
    assert ev.model_name == "lasso"
    assert ev.r2 > 0.95


def test_single_test_row_is_too_few(linear_data, fit_config) -> None:
    result = fit_stepwise(linear_data, OUTCOME_COL, config=fit_config)
    with pytest.raises(InsufficientData):
        evaluate_model(result.model, linear_data.iloc[:1])
