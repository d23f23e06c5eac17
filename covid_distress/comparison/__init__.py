"""
Estimate Comparison
===================

Cross-validated (full-data refit) coefficients against simple correlations,
grouped by predictor domain.
"""

from ._config import (
    CATEGORY_COLORS,
    CATEGORY_ORDER,
    PREDICTOR_LOOKUP,
    UNCATEGORIZED,
    PredictorInfo,
    get_category,
    get_label,
)
from .estimates import (
    OVER_ESTIMATE,
    UNDER_ESTIMATE,
    EstimateComparison,
    classify_estimate,
    compare_estimates,
    marginal_estimates,
)

__all__ = [
    "CATEGORY_COLORS",
    "CATEGORY_ORDER",
    "PREDICTOR_LOOKUP",
    "UNCATEGORIZED",
    "PredictorInfo",
    "get_category",
    "get_label",
    "OVER_ESTIMATE",
    "UNDER_ESTIMATE",
    "EstimateComparison",
    "classify_estimate",
    "compare_estimates",
    "marginal_estimates",
]
