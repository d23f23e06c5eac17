"""
Validity & Reliability
======================

Psychometric internal consistency of the distress scale.

Usage:
    from covid_distress.reliability import estimate_reliability
    result = estimate_reliability(items, reverse_keys=["item_4", "item_7"])
"""

from .reliability import (
    OmegaResult,
    ReliabilityResult,
    cronbach_alpha,
    estimate_reliability,
    interpret_alpha,
    omega_coefficients,
    reverse_score,
)

__all__ = [
    "OmegaResult",
    "ReliabilityResult",
    "cronbach_alpha",
    "estimate_reliability",
    "interpret_alpha",
    "omega_coefficients",
    "reverse_score",
]
