"""
Dataset loading for the distress analysis.

Reads the observation table (scaled predictors + outcome) and the item-level
scale responses, strips subject identifiers, coerces every remaining column
to numeric and drops columns that hold no numbers at all.
"""

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from covid_distress.errors import InsufficientData, MissingColumn, require_columns
from .constants import DATA_DIR, ID_ALIASES, ITEM_FILE, OBSERVATION_FILE, OUTCOME_COL


def strip_identifiers(df: pd.DataFrame, aliases: Iterable[str] = ID_ALIASES) -> pd.DataFrame:
    """
    Drop every subject-identifier column.

    Parameters
    ----------
    df : pd.DataFrame
        Raw table as read from disk
    aliases : iterable of str
        Column names treated as identifiers

    Returns
    -------
    pd.DataFrame
        Copy of ``df`` without identifier columns
    """
    aliases = set(aliases)
    id_cols = [c for c in df.columns if c in aliases or str(c).startswith("Unnamed:")]
    return df.drop(columns=id_cols).copy()


def _coerce_numeric(df: pd.DataFrame, table: str) -> pd.DataFrame:
    out = df.apply(pd.to_numeric, errors="coerce")
    # a column that was non-empty but became all-NaN was never numeric
    lost = [c for c in df.columns if df[c].notna().any() and out[c].isna().all()]
    if lost:
        warnings.warn(f"{table}: non-numeric column(s) {lost} dropped", UserWarning)
    return out.drop(columns=lost)


def load_observation_table(
    path: Optional[Path] = None,
    outcome: str = OUTCOME_COL,
    dropna: bool = True,
) -> pd.DataFrame:
    """
    Load the predictor/outcome table.

    Rows with any missing value are dropped (complete-case analysis) unless
    ``dropna`` is False. The index is reset so row labels run 0..n-1.
    """
    path = Path(path) if path is not None else DATA_DIR / OBSERVATION_FILE
    raw = pd.read_csv(path, encoding="utf-8-sig")
    df = _coerce_numeric(strip_identifiers(raw), table=path.name)
    require_columns(df, [outcome], table=path.name)
    if df.shape[1] < 2:
        raise MissingColumn(path.name, ["<at least one predictor>"])
    if dropna:
        df = df.dropna()
        if df.empty:
            raise InsufficientData(f"{path.name}: no complete rows left after dropping missing values")
    return df.reset_index(drop=True)


def load_item_table(path: Optional[Path] = None) -> pd.DataFrame:
    """Load item-level scale responses (one column per item)."""
    path = Path(path) if path is not None else DATA_DIR / ITEM_FILE
    raw = pd.read_csv(path, encoding="utf-8-sig")
    df = _coerce_numeric(strip_identifiers(raw), table=path.name)
    return df.reset_index(drop=True)


def split_predictors(df: pd.DataFrame, outcome: str = OUTCOME_COL) -> list[str]:
    """Return every column except the outcome, in table order."""
    require_columns(df, [outcome], table="observation table")
    return [c for c in df.columns if c != outcome]
