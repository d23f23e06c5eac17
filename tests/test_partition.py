from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from covid_distress.errors import InsufficientData, InvalidFraction, MissingColumn
from covid_distress.preprocessing import Partition, outcome_bins, stratified_partition
from covid_distress.preprocessing.constants import OUTCOME_COL

pytestmark = pytest.mark.unit


def test_same_seed_gives_identical_partition(synthetic_data) -> None:
    a = stratified_partition(synthetic_data, p=0.75, seed=123)
    b = stratified_partition(synthetic_data, p=0.75, seed=123)
    assert a.train_index == b.train_index
    assert a.test_index == b.test_index


def test_different_seed_changes_membership(synthetic_data) -> None:
    a = stratified_partition(synthetic_data, seed=123)
    b = stratified_partition(synthetic_data, seed=124)
    assert a.train_index != b.train_index


@pytest.mark.parametrize("n, p", [(1000, 0.75), (101, 0.75), (250, 0.6), (40, 0.5)])
def test_train_size_within_one_row_of_target(n, p) -> None:
    rng = np.random.default_rng(0)
    df = pd.DataFrame({"x": rng.standard_normal(n), OUTCOME_COL: rng.standard_normal(n)})
    part = stratified_partition(df, p=p, seed=1)
    assert abs(len(part.train_index) - p * n) <= 1
    assert part.n == n


def test_partition_is_disjoint_and_complete(synthetic_data) -> None:
    part = stratified_partition(synthetic_data)
    train, test = set(part.train_index), set(part.test_index)
    assert not train & test
    assert train | test == set(synthetic_data.index)

    frame = part.to_frame()
    assert list(frame["row"]) == sorted(synthetic_data.index)
    assert frame["split"].value_counts()["train"] == len(train)


def test_train_and_test_views_are_copies(synthetic_data) -> None:
    part = stratified_partition(synthetic_data)
    train = part.train(synthetic_data)
    train[OUTCOME_COL] = 0.0
    assert synthetic_data[OUTCOME_COL].abs().sum() > 0
    assert len(part.test(synthetic_data)) == len(part.test_index)


def test_outcome_distribution_is_preserved(synthetic_data) -> None:
    part = stratified_partition(synthetic_data)
    y_train = part.train(synthetic_data)[OUTCOME_COL]
    y_test = part.test(synthetic_data)[OUTCOME_COL]
    sd = synthetic_data[OUTCOME_COL].std()
    assert abs(y_train.mean() - y_test.mean()) < 0.15 * sd
    assert abs(y_train.median() - y_test.median()) < 0.2 * sd

    bins = outcome_bins(synthetic_data[OUTCOME_COL])
    train_share = pd.Series(bins[list(part.train_index)]).value_counts(normalize=True)
    assert np.allclose(train_share.sort_index().to_numpy(), 0.2, atol=0.02)


@pytest.mark.parametrize("p", [0.0, 1.0, -0.1, 1.5])
def test_fraction_outside_open_interval_is_rejected(synthetic_data, p) -> None:
    with pytest.raises(InvalidFraction):
        stratified_partition(synthetic_data, p=p)


def test_too_few_rows_to_stratify() -> None:
    df = pd.DataFrame({"x": [1.0, 2.0, 3.0, 4.0, 5.0], OUTCOME_COL: [0.1, 0.5, 0.2, 0.9, 0.3]})
    with pytest.raises(InsufficientData):
        stratified_partition(df, p=0.75)


def test_constant_outcome_cannot_be_stratified() -> None:
    df = pd.DataFrame({"x": np.arange(100.0), OUTCOME_COL: np.zeros(100)})
    with pytest.raises(InsufficientData, match="too few distinct values"):
        stratified_partition(df)


def test_missing_outcome_values_are_rejected(synthetic_data) -> None:
    df = synthetic_data.copy()
    df.loc[3, OUTCOME_COL] = np.nan
    with pytest.raises(InsufficientData, match="missing values"):
        stratified_partition(df)


def test_missing_outcome_column(synthetic_data) -> None:
    with pytest.raises(MissingColumn) as exc:
        stratified_partition(synthetic_data.drop(columns=[OUTCOME_COL]))
    assert OUTCOME_COL in str(exc.value)
    assert exc.value.table == "observation table"


def test_partition_is_frozen(synthetic_data) -> None:
    part = stratified_partition(synthetic_data)
    assert isinstance(part, Partition)
    with pytest.raises(AttributeError):
        part.seed = 5
