"""
Common formatting helpers shared by the stage runners.
"""

from __future__ import annotations

import numpy as np
import pandas as pd


# Upper bounds, inclusive
SIGNIFICANCE_BANDS = ((0.001, "***"), (0.01, "**"), (0.05, "*"))
NOT_SIGNIFICANT = "n.s."


def significance_band(p: float) -> str:
    """Map a p-value to ``***`` / ``**`` / ``*`` / ``n.s.`` (bounds inclusive)."""
    if p is None or pd.isna(p):
        return NOT_SIGNIFICANT
    for bound, label in SIGNIFICANCE_BANDS:
        if p <= bound:
            return label
    return NOT_SIGNIFICANT


def format_pvalue(p: float, threshold: float = 0.001) -> str:
    """Format p-value for publication."""
    if pd.isna(p):
        return "NA"
    if p < threshold:
        return f"< {threshold}"
    return f"{p:.3f}"


def format_coefficient(value: float, decimals: int = 3) -> str:
    """Format coefficient for publication."""
    if pd.isna(value):
        return "NA"
    return f"{value:.{decimals}f}"


def format_estimate(beta: float, se: float, p: float) -> str:
    """APA-style ``b (SE)***`` cell."""
    if pd.isna(beta):
        return "NA"
    stars = significance_band(p)
    stars = "" if stars == NOT_SIGNIFICANT else stars
    se_txt = "NA" if pd.isna(se) else f"{se:.3f}"
    return f"{beta:.3f} ({se_txt}){stars}"


def finite_pair(x: pd.Series, y: pd.Series) -> tuple[np.ndarray, np.ndarray]:
    """Numeric arrays of the rows where both ``x`` and ``y`` are finite."""
    x = pd.to_numeric(x, errors="coerce").to_numpy(dtype=float)
    y = pd.to_numeric(y, errors="coerce").to_numpy(dtype=float)
    mask = np.isfinite(x) & np.isfinite(y)
    return x[mask], y[mask]


def print_section_header(title: str, width: int = 70) -> None:
    """Print formatted section header."""
    print("\n" + "=" * width)
    print(title)
    print("=" * width)
