"""
Descriptive Statistics
======================

Table-1 style summaries (N, Mean, SD, Min, Max, Median, Skewness, Kurtosis)
and a Pearson correlation matrix with a long-format significance table.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from covid_distress.utils import finite_pair, significance_band


def compute_descriptive_stats(
    df: pd.DataFrame,
    columns: Optional[Sequence[str]] = None,
    labels: Optional[dict] = None,
) -> pd.DataFrame:
    """
    Compute descriptive statistics for the given columns.

    Parameters
    ----------
    df : pd.DataFrame
        Input dataframe
    columns : sequence of str, optional
        Columns to summarise (default: all)
    labels : dict, optional
        Column -> display label

    Returns
    -------
    pd.DataFrame
        One row per column
    """
    columns = list(columns) if columns is not None else list(df.columns)
    labels = labels or {}
    results = []

    for col in columns:
        if col not in df.columns:
            print(f"  [WARNING] Variable '{col}' not found in dataset")
            continue

        series = pd.to_numeric(df[col], errors="coerce").dropna()
        results.append({
            'Variable': labels.get(col, col),
            'Column': col,
            'N': len(series),
            'Mean': series.mean(),
            'SD': series.std(),
            'Min': series.min(),
            'Max': series.max(),
            'Median': series.median(),
            'Skewness': stats.skew(series) if len(series) > 2 else np.nan,
            'Kurtosis': stats.kurtosis(series) if len(series) > 2 else np.nan,
        })

    return pd.DataFrame(results)


def pearson_with_ci(x: pd.Series, y: pd.Series, confidence: float = 0.95) -> dict:
    """Pearson r with p-value and Fisher-z confidence interval."""
    xv, yv = finite_pair(x, y)
    n = int(len(xv))
    if n < 4 or np.std(xv) == 0 or np.std(yv) == 0:
        return dict(n=n, r=np.nan, p=np.nan, ci_low=np.nan, ci_high=np.nan)
    res = stats.pearsonr(xv, yv)
    ci = res.confidence_interval(confidence_level=confidence)
    return dict(
        n=n,
        r=float(res.statistic),
        p=float(res.pvalue),
        ci_low=float(ci.low),
        ci_high=float(ci.high),
    )


def correlation_table(df: pd.DataFrame, columns: Optional[Sequence[str]] = None) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Correlation matrix plus pairwise significance table.

    Returns
    -------
    (corr, sig)
        ``corr`` is the square Pearson matrix; ``sig`` has one row per
        unordered pair with r, p, CI and significance band.
    """
    cols = [c for c in (columns or df.columns) if c in df.columns]
    corr = df[cols].corr()
    rows = []
    for i, a in enumerate(cols):
        for b in cols[i + 1:]:
            res = pearson_with_ci(df[a], df[b])
            rows.append({"var_x": a, "var_y": b, **res, "sig": significance_band(res["p"])})
    sig = pd.DataFrame(rows, columns=["var_x", "var_y", "n", "r", "p", "ci_low", "ci_high", "sig"])
    return corr, sig
