"""
Regression Tables
=================

Publication tables for the full-data refit, written only when table export
is switched on:

- regression_table.html: coefficient table with model fit footer
- regression_table_apa.csv: APA-style ``b (SE)***`` cells with 95% CIs
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Optional

import pandas as pd

from covid_distress.comparison import get_label
from covid_distress.modeling.refit import RefitResult
from covid_distress.utils import format_coefficient, format_estimate, format_pvalue


def results_to_apa_table(refit: RefitResult, lookup: Optional[Mapping] = None) -> pd.DataFrame:
    """
    Format refit coefficients as an APA-style regression table.

    Args:
        refit: Full-data OLS result
        lookup: Predictor lookup used for display labels

    Returns:
        Formatted DataFrame for publication
    """
    rows = []
    for _, r in refit.coefficients.iterrows():
        rows.append({
            'Predictor': get_label(r['predictor'], lookup),
            'b (SE)': format_estimate(r['estimate'], r['se'], r['p']),
            '95% CI': f"[{format_coefficient(r['ci_low'])}, {format_coefficient(r['ci_high'])}]",
            't': format_coefficient(r['t'], 2),
            'p': format_pvalue(r['p']),
        })
    return pd.DataFrame(rows, columns=['Predictor', 'b (SE)', '95% CI', 't', 'p'])


def regression_table_html(refit: RefitResult, lookup: Optional[Mapping] = None) -> str:
    """HTML coefficient table with an N / R² / adjusted R² / AIC footer."""
    table = results_to_apa_table(refit, lookup)
    body = table.to_html(index=False, escape=True, border=0, classes="regression-table")
    footer = (
        f"<p>Outcome: {refit.model.outcome}. N = {refit.n}; "
        f"R² = {refit.r2:.3f}; adjusted R² = {refit.adj_r2:.3f}; AIC = {refit.aic:.1f}. "
        f"*** p ≤ .001, ** p ≤ .01, * p ≤ .05.</p>"
    )
    return f"<h3>{refit.model.formula}</h3>\n{body}\n{footer}\n"


def export_regression_tables(
    refit: RefitResult,
    output_dir: Path,
    lookup: Optional[Mapping] = None,
) -> List[Path]:
    """Write the HTML and APA tables; returns the written paths."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    html_path = output_dir / "regression_table.html"
    html_path.write_text(regression_table_html(refit, lookup), encoding="utf-8")

    apa_path = output_dir / "regression_table_apa.csv"
    results_to_apa_table(refit, lookup).to_csv(apa_path, index=False, encoding="utf-8-sig")
    return [html_path, apa_path]
