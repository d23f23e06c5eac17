"""
Error Taxonomy
==============

Every failure in the analysis is unrecoverable for the run that triggers it.
Each error names the table and column(s) involved so the operator can fix the
input and rerun.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


class AnalysisError(Exception):
    """Base class for all analysis failures."""


class InvalidFraction(AnalysisError, ValueError):
    """Train fraction outside the open interval (0, 1)."""


class InsufficientData(AnalysisError, ValueError):
    """Too few rows to stratify, fit, or correlate."""


class NonConvergent(AnalysisError, RuntimeError):
    """Stepwise search could not improve on the intercept-only model.

    The null model is attached as ``model`` so callers can still report it.
    """

    def __init__(self, message: str, model: Optional[Any] = None):
        super().__init__(message)
        self.model = model


class DimensionMismatch(AnalysisError, ValueError):
    """Test rows do not carry the predictor schema the model was fit on."""


class MissingColumn(AnalysisError, KeyError):
    """An expected predictor or outcome column is absent from a table."""

    def __init__(self, table: str, columns: Iterable[str]):
        self.table = table
        self.columns = list(columns)
        super().__init__(f"{table}: missing column(s) {self.columns}")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class SingularFit(AnalysisError, ValueError):
    """Collinear predictors make the least-squares design rank deficient."""


def require_columns(df, columns: Iterable[str], table: str) -> None:
    """Raise MissingColumn if any of ``columns`` is absent from ``df``."""
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise MissingColumn(table, missing)
