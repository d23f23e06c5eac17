from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from covid_distress.errors import MissingColumn, NonConvergent, require_columns
from covid_distress.utils import format_estimate, format_pvalue, significance_band

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "p, band",
    [
        (0.0, "***"),
        (0.0005, "***"),
        (0.0009, "***"),
        (0.001, "***"),
        (0.0011, "**"),
        (0.01, "**"),
        (0.02, "*"),
        (0.05, "*"),
        (0.0501, "n.s."),
        (0.2, "n.s."),
        (0.9, "n.s."),
        (np.nan, "n.s."),
        (None, "n.s."),
    ],
)
def test_significance_band_bounds_inclusive(p, band) -> None:
    assert significance_band(p) == band


def test_format_helpers() -> None:
    assert format_pvalue(0.0002) == "< 0.001"
    assert format_pvalue(0.0456) == "0.046"
    assert format_pvalue(np.nan) == "NA"
    assert format_estimate(0.25, 0.05, 0.0001) == "0.250 (0.050)***"
    assert format_estimate(-0.1, 0.2, 0.6) == "-0.100 (0.200)"


def test_missing_column_message_names_table() -> None:
    with pytest.raises(MissingColumn) as exc:
        require_columns(pd.DataFrame({"a": [1]}), ["a", "b"], table="test rows")
    assert str(exc.value) == "test rows: missing column(s) ['b']"
    assert isinstance(exc.value, KeyError)


def test_non_convergent_carries_model() -> None:
    err = NonConvergent("no improvement", model="null")
    assert err.model == "null"
    assert isinstance(err, RuntimeError)
