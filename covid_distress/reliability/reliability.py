"""
Reliability Analysis
====================

Internal consistency of the distress scale from item-level responses.

Analyses:
1. Cronbach's alpha on reverse-keyed items
2. McDonald's omega from a Schmid-Leiman bifactor solution
   - oblique factor analysis of the items (factor_analyzer, minres/oblimin)
   - one second-order factor of the group-factor correlations
   - general loadings = first-order loadings x second-order loadings
   - omega hierarchical (general factor only), omega total, and one omega per
     group factor

Errors raised by factor_analyzer or numpy (e.g. a correlation matrix that is
not positive definite) propagate unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd
from factor_analyzer import FactorAnalyzer

from covid_distress.errors import InsufficientData, require_columns
from covid_distress.preprocessing.constants import OMEGA_GROUP_FACTORS


def reverse_score(
    items: pd.DataFrame,
    reverse_keys: Sequence[str],
    scale_min: Optional[float] = None,
    scale_max: Optional[float] = None,
) -> pd.DataFrame:
    """
    Reverse-score the named items as ``min + max - x``.

    Scale bounds default to the observed minimum and maximum over all items.
    """
    require_columns(items, reverse_keys, table="item table")
    out = items.copy()
    lo = float(np.nanmin(items.to_numpy(dtype=float))) if scale_min is None else scale_min
    hi = float(np.nanmax(items.to_numpy(dtype=float))) if scale_max is None else scale_max
    for col in reverse_keys:
        out[col] = lo + hi - out[col]
    return out


def cronbach_alpha(df: pd.DataFrame) -> float:
    """
    Calculate Cronbach's alpha for internal consistency.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame with items as columns, participants as rows

    Returns
    -------
    float
        Cronbach's alpha coefficient
    """
    df_clean = df.dropna()
    if len(df_clean) < 2:
        return np.nan

    n_items = df_clean.shape[1]
    if n_items < 2:
        return np.nan

    item_variances = df_clean.var(axis=0, ddof=1)
    total_variance = df_clean.sum(axis=1).var(ddof=1)

    if total_variance == 0:
        return np.nan

    alpha = (n_items / (n_items - 1)) * (1 - item_variances.sum() / total_variance)
    return alpha


def interpret_alpha(alpha: float) -> str:
    """Interpret Cronbach's alpha value."""
    if np.isnan(alpha):
        return "N/A"
    if alpha >= 0.9:
        return "Excellent"
    if alpha >= 0.8:
        return "Good"
    if alpha >= 0.7:
        return "Acceptable"
    if alpha >= 0.6:
        return "Questionable"
    if alpha >= 0.5:
        return "Poor"
    return "Unacceptable"


# =============================================================================
# OMEGA
# =============================================================================

@dataclass(frozen=True)
class OmegaResult:
    omega_hierarchical: float
    omega_total: float
    omega_groups: Dict[str, float]
    n_factors: int
    loadings: pd.DataFrame = field(repr=False, compare=False)


def _second_order_loadings(phi: np.ndarray) -> np.ndarray:
    """Loadings of the group factors on one general factor."""
    k = phi.shape[0]
    if k == 1:
        return np.ones(1)
    if k == 2:
        # two factors only identify the product of their loadings
        return np.full(2, np.sqrt(abs(phi[0, 1])))
    fa = FactorAnalyzer(n_factors=1, rotation=None, method="minres", is_corr_matrix=True)
    fa.fit(phi)
    gl = fa.loadings_[:, 0]
    return -gl if gl.sum() < 0 else gl


def omega_coefficients(
    items: pd.DataFrame,
    n_factors: int = OMEGA_GROUP_FACTORS,
    rotation: str = "oblimin",
) -> OmegaResult:
    """
    Omega hierarchical / total via a Schmid-Leiman transformation.

    Parameters
    ----------
    items : pd.DataFrame
        Reverse-keyed item responses
    n_factors : int
        Number of group factors
    rotation : str
        Oblique rotation passed to factor_analyzer

    Returns
    -------
    OmegaResult
    """
    data = items.dropna()
    if data.shape[1] < max(3, n_factors + 1) or len(data) <= data.shape[1]:
        raise InsufficientData(
            f"item table: {len(data)} complete rows x {data.shape[1]} items "
            f"cannot support {n_factors} group factors"
        )

    fa = FactorAnalyzer(
        n_factors=n_factors,
        rotation=rotation if n_factors > 1 else None,
        method="minres",
    )
    fa.fit(data)
    phi = getattr(fa, "phi_", None)
    phi = np.eye(n_factors) if phi is None else np.asarray(phi)

    # orient every factor so its loadings sum positive
    signs = np.where(fa.loadings_.sum(axis=0) < 0, -1.0, 1.0)
    loadings = fa.loadings_ * signs
    phi = phi * np.outer(signs, signs)

    gl = _second_order_loadings(phi)
    general = loadings @ gl
    group = loadings * np.sqrt(np.clip(1 - gl ** 2, 0, None))
    if n_factors == 1:
        group = np.zeros_like(loadings)

    communality = general ** 2 + (group ** 2).sum(axis=1)
    uniqueness = 1 - communality
    corr = data.corr().to_numpy()
    total_variance = corr.sum()

    omega_h = general.sum() ** 2 / total_variance
    omega_t = 1 - uniqueness.sum() / total_variance

    factor_names = [f"F{j + 1}" for j in range(n_factors)]
    owner = np.abs(group).argmax(axis=1) if n_factors > 1 else np.zeros(len(general), dtype=int)
    omega_groups = {}
    for j, name in enumerate(factor_names):
        members = np.where(owner == j)[0]
        if n_factors == 1 or len(members) == 0:
            continue
        sub_total = corr[np.ix_(members, members)].sum()
        omega_groups[name] = float(group[members, j].sum() ** 2 / sub_total)

    table = pd.DataFrame(group, index=data.columns, columns=factor_names)
    table.insert(0, "g", general)
    table["h2"] = communality
    table["u2"] = uniqueness
    return OmegaResult(
        omega_hierarchical=float(omega_h),
        omega_total=float(omega_t),
        omega_groups=omega_groups,
        n_factors=n_factors,
        loadings=table,
    )


# =============================================================================
# COMBINED
# =============================================================================

@dataclass(frozen=True)
class ReliabilityResult:
    alpha: float
    interpretation: str
    omega: OmegaResult
    n_items: int
    n_subjects: int
    reverse_keys: tuple

    def summary(self) -> dict:
        return {
            "n_items": self.n_items,
            "n_subjects": self.n_subjects,
            "reverse_keys": list(self.reverse_keys),
            "cronbach_alpha": self.alpha,
            "interpretation": self.interpretation,
            "omega_hierarchical": self.omega.omega_hierarchical,
            "omega_total": self.omega.omega_total,
            "omega_groups": self.omega.omega_groups,
            "n_group_factors": self.omega.n_factors,
        }


def estimate_reliability(
    items: pd.DataFrame,
    reverse_keys: Sequence[str] = (),
    n_factors: int = OMEGA_GROUP_FACTORS,
    scale_min: Optional[float] = None,
    scale_max: Optional[float] = None,
) -> ReliabilityResult:
    """Cronbach's alpha and omega for the item table after reverse keying."""
    keyed = reverse_score(items, list(reverse_keys), scale_min, scale_max) if reverse_keys else items.copy()
    alpha = cronbach_alpha(keyed)
    return ReliabilityResult(
        alpha=float(alpha),
        interpretation=interpret_alpha(alpha),
        omega=omega_coefficients(keyed, n_factors=n_factors),
        n_items=int(keyed.shape[1]),
        n_subjects=int(len(keyed.dropna())),
        reverse_keys=tuple(reverse_keys),
    )
