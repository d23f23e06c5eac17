"""
Figures
=======

Publication figures for the distress models.

- prediction scatter: predicted vs observed distress on the test split
- coefficient bars: full-data refit estimates with SE error bars and stars
- CV vs simple: adjusted coefficient against simple correlation per predictor
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Optional

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
import matplotlib.patches as mpatches
import seaborn as sns

from covid_distress.comparison import (
    CATEGORY_COLORS,
    CATEGORY_ORDER,
    OVER_ESTIMATE,
    UNDER_ESTIMATE,
    get_category,
    get_label,
)
from covid_distress.modeling.evaluation import EvaluationResult
from covid_distress.preprocessing.constants import (
    COMPARISON_AXIS_LIMITS,
    FIGURE_DPI,
    PREDICTION_AXIS_LIMITS,
)
from covid_distress.utils import NOT_SIGNIFICANT


COLORS = {
    'primary': '#2E86AB',
    'accent': '#F18F01',
    'neutral': '#95A5A6',
    'over_estimate': '#E74C3C',
    'under_estimate': '#2ECC71',
}


def set_publication_style():
    """Set matplotlib style for publication-quality figures."""
    plt.rcParams.update({
        'figure.dpi': 150,
        'savefig.dpi': 300,
        'font.size': 11,
        'font.family': 'sans-serif',
        'axes.titlesize': 12,
        'axes.labelsize': 11,
        'axes.titleweight': 'bold',
        'axes.spines.top': False,
        'axes.spines.right': False,
        'legend.fontsize': 9,
        'legend.frameon': False,
        'figure.facecolor': 'white',
        'axes.facecolor': 'white',
        'axes.grid': True,
        'grid.alpha': 0.3,
        'grid.linestyle': '--',
    })


def save_figure(fig: plt.Figure, path: Path, formats: Optional[List[str]] = None) -> List[Path]:
    """Save ``fig`` as each format next to ``path`` and close it."""
    formats = formats or ["png"]
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    saved = []
    for fmt in formats:
        out = path.with_suffix(f".{fmt}")
        fig.savefig(out, dpi=FIGURE_DPI, bbox_inches='tight')
        saved.append(out)
    plt.close(fig)
    return saved


# =============================================================================
# PREDICTION SCATTER
# =============================================================================

def plot_prediction_scatter(
    evaluation: EvaluationResult,
    output_path: Optional[Path] = None,
    limits: tuple = PREDICTION_AXIS_LIMITS,
    title: Optional[str] = None,
) -> plt.Figure:
    """
    Predicted vs observed outcome on fixed, equal axes with an identity line.
    """
    set_publication_style()
    data = evaluation.predictions

    fig, ax = plt.subplots(figsize=(6, 6))
    sns.scatterplot(data=data, x="observed", y="predicted", color=COLORS['primary'], alpha=0.6, ax=ax)
    sns.regplot(data=data, x="observed", y="predicted", scatter=False,
                color=COLORS['accent'], ax=ax, line_kws={'linewidth': 2})
    ax.plot(limits, limits, color="black", linewidth=1, linestyle="--", alpha=0.6)

    ax.set_xlim(limits)
    ax.set_ylim(limits)
    ax.set_aspect("equal", adjustable="box")
    ax.set_xlabel("Observed distress (z)")
    ax.set_ylabel("Predicted distress (z)")
    ax.set_title(title or f"Test split: {evaluation.model_name}")
    ax.text(
        0.04, 0.96,
        f"r = {evaluation.correlation:.2f}\nR² = {evaluation.r2:.2f}\nn = {evaluation.n}",
        transform=ax.transAxes, va="top", ha="left", fontsize=10,
    )
    fig.tight_layout()

    if output_path:
        save_figure(fig, output_path)
    return fig


# =============================================================================
# COEFFICIENT BARS
# =============================================================================

def plot_coefficients(
    coefficients: pd.DataFrame,
    output_path: Optional[Path] = None,
    lookup: Optional[Mapping] = None,
    title: str = "Full-data model coefficients",
) -> plt.Figure:
    """
    Horizontal bars of refit estimates with ±1 SE error bars, coloured by
    predictor category and annotated with significance stars.
    """
    set_publication_style()
    data = coefficients.sort_values("estimate").reset_index(drop=True)
    labels = [get_label(p, lookup) for p in data["predictor"]]
    colors = [
        CATEGORY_COLORS.get(get_category(p, lookup), COLORS['neutral']) for p in data["predictor"]
    ]

    fig, ax = plt.subplots(figsize=(8, max(3.0, 0.45 * len(data) + 1.2)))
    y = np.arange(len(data))
    ax.barh(y, data["estimate"], xerr=data["se"], color=colors, alpha=0.85,
            error_kw={'capsize': 3, 'linewidth': 1})
    ax.axvline(0, color="black", linewidth=1)

    span = float(np.nanmax(np.abs(data["estimate"]) + data["se"])) if len(data) else 1.0
    for yi, (est, se, sig) in enumerate(zip(data["estimate"], data["se"], data["sig"])):
        if sig == NOT_SIGNIFICANT:
            continue
        offset = (se + 0.03 * span) * (1 if est >= 0 else -1)
        ax.text(est + offset, yi, sig, va="center", ha="left" if est >= 0 else "right", fontsize=10)

    ax.set_yticks(y)
    ax.set_yticklabels(labels)
    ax.set_xlim(-1.25 * span if (data["estimate"] < 0).any() else -0.1 * span, 1.25 * span)
    ax.set_xlabel("Standardized estimate (±1 SE)")
    ax.set_title(title)
    ax.grid(True, axis="x", alpha=0.2)

    present = [c for c in CATEGORY_ORDER if c in {get_category(p, lookup) for p in data["predictor"]}]
    if present:
        handles = [mpatches.Patch(color=CATEGORY_COLORS[c], label=c) for c in present]
        ax.legend(handles=handles, loc="lower right")
    fig.tight_layout()

    if output_path:
        save_figure(fig, output_path)
    return fig


# =============================================================================
# CV VS SIMPLE ESTIMATES
# =============================================================================

def plot_cv_vs_simple(
    comparison: pd.DataFrame,
    output_path: Optional[Path] = None,
    limits: tuple = COMPARISON_AXIS_LIMITS,
    title: str = "Cross-validated vs simple estimates",
) -> plt.Figure:
    """
    Simple correlation (x) against the cross-validated coefficient (y) per
    predictor, coloured by category. Points below the identity line are
    predictors whose simple estimate overstates the adjusted effect.
    """
    set_publication_style()
    fig, ax = plt.subplots(figsize=(7, 7))

    present = set(comparison["category"].dropna())
    hue_order = [c for c in CATEGORY_ORDER if c in present] + sorted(present - set(CATEGORY_ORDER))
    palette = {c: CATEGORY_COLORS.get(c, COLORS['neutral']) for c in hue_order}
    if len(comparison):
        sns.scatterplot(data=comparison, x="simple_estimate", y="cv_estimate", hue="category",
                        hue_order=hue_order, palette=palette, s=70, ax=ax)
        ax.errorbar(
            comparison["simple_estimate"], comparison["cv_estimate"],
            xerr=[comparison["simple_estimate"] - comparison["simple_ci_low"],
                  comparison["simple_ci_high"] - comparison["simple_estimate"]],
            yerr=comparison["cv_se"], fmt="none", ecolor=COLORS['neutral'], alpha=0.6, zorder=0,
        )
        # ring flagged predictors
        for flag, name in [(OVER_ESTIMATE, "Over-estimate"), (UNDER_ESTIMATE, "Under-estimate")]:
            flagged = comparison[comparison["flag"] == flag]
            if len(flagged):
                ax.scatter(flagged["simple_estimate"], flagged["cv_estimate"], s=160,
                           facecolors="none", edgecolors=COLORS[flag], linewidths=1.5, label=name)
        ax.legend(loc="upper left", fontsize=8)
        for _, row in comparison.iterrows():
            ax.annotate(row["label"], (row["simple_estimate"], row["cv_estimate"]),
                        xytext=(4, 4), textcoords="offset points", fontsize=8)

    ax.plot(limits, limits, color="black", linewidth=1, linestyle="--", alpha=0.6)
    ax.axhline(0, color="grey", linewidth=0.8)
    ax.axvline(0, color="grey", linewidth=0.8)
    ax.set_xlim(limits)
    ax.set_ylim(limits)
    ax.set_aspect("equal", adjustable="box")
    ax.set_xlabel("Simple estimate (r)")
    ax.set_ylabel("Cross-validated estimate (β)")
    ax.set_title(title)
    fig.tight_layout()

    if output_path:
        save_figure(fig, output_path)
    return fig
