"""
COVID-19 Emotional Distress Analysis
====================================

Predictive models of self-reported COVID-19 emotional distress from survey
questionnaire scores, with a psychometric check of the distress scale.

Sub-packages:
- preprocessing: loading, stratified train/test partition, descriptives
- modeling: cross-validated stepwise OLS, random forest / lasso benchmarks,
  held-out evaluation, full-data refit
- comparison: cross-validated vs simple estimates by predictor category
- reliability: Cronbach's alpha and bifactor omega
- visualization: figures, regression tables, correlation network

Usage:
    python -m covid_distress --list
    python -m covid_distress -a compare
"""

from covid_distress.errors import (
    AnalysisError,
    DimensionMismatch,
    InsufficientData,
    InvalidFraction,
    MissingColumn,
    NonConvergent,
    SingularFit,
)

__version__ = "1.0.0"

__all__ = [
    "AnalysisError",
    "DimensionMismatch",
    "InsufficientData",
    "InvalidFraction",
    "MissingColumn",
    "NonConvergent",
    "SingularFit",
]
