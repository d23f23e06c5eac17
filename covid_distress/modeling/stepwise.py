"""
Cross-validated Stepwise Selection
==================================

Bidirectional stepwise OLS guided by AIC, assessed under k-fold resampling.

Two levels:
    outer  k folds of the training rows; on each fold the full stepwise search
           runs on the k-1 training folds and is scored on the held-out fold.
    inner  greedy search: from the current predictor set, try every single
           addition and removal, accept the move with the lowest AIC, stop when
           no move lowers AIC.

The reported formula comes either from one more search on all training rows
(``final_model="refit"``) or from the fold with the lowest held-out RMSE
(``final_model="best_fold"``). Selected predictors are returned as an explicit
tuple; nothing is parsed back out of a fitted model.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd
from statsmodels.regression.linear_model import RegressionResultsWrapper

from covid_distress.errors import InsufficientData, NonConvergent, require_columns
from covid_distress.preprocessing.constants import OUTCOME_COL
from ._config import FitConfig
from ._parallel import map_folds
from ._types import CVSummary, FittedModel, StepRecord, design_frame, fit_ols, fold_frame
from .evaluation import regression_metrics

FINAL_MODEL_MODES = ("refit", "best_fold")


# =============================================================================
# INNER SEARCH
# =============================================================================

def stepwise_aic(
    data: pd.DataFrame,
    outcome: str,
    candidates: Sequence[str],
    start: str = "full",
    table: str = "training rows",
) -> Tuple[List[str], RegressionResultsWrapper, List[StepRecord]]:
    """
    Greedy bidirectional search that keeps moving while AIC strictly drops.

    Parameters
    ----------
    data : pd.DataFrame
        Rows to fit on
    outcome : str
        Outcome column
    candidates : sequence of str
        Full predictor pool
    start : {"full", "null"}
        Initial model: every candidate, or intercept only

    Returns
    -------
    (selected, results, history)
        ``selected`` keeps the order of ``candidates``; ``history`` lists the
        starting model and every accepted move.
    """
    candidates = list(candidates)
    if start not in ("full", "null"):
        raise ValueError(f"Unknown start model: {start}")
    y = data[outcome]

    # Rank check on the full pool; every subset is then full rank too
    full_fit = fit_ols(y, data[candidates], table=table)

    current = list(candidates) if start == "full" else []
    best = full_fit if start == "full" else fit_ols(y, data[[]], table=table)
    history = [StepRecord(0, "start", None, float(best.aic), len(current))]

    while True:
        moves = []
        for pred in current:
            trial = [c for c in current if c != pred]
            moves.append(("remove", pred, trial))
        for pred in candidates:
            if pred not in current:
                trial = [c for c in candidates if c in current or c == pred]
                moves.append(("add", pred, trial))
        if not moves:
            break

        scored = []
        for order, (action, pred, trial) in enumerate(moves):
            res = fit_ols(y, data[trial], table=table)
            scored.append((res.aic, order, action, pred, trial, res))
        scored.sort(key=lambda s: (s[0], s[1]))
        aic, _, action, pred, trial, res = scored[0]

        # Strict decrease means a move can never be undone on the next step
        if not aic < best.aic:
            break
        current, best = trial, res
        history.append(StepRecord(len(history), action, pred, float(aic), len(current)))

    return current, best, history


# =============================================================================
# OUTER RESAMPLING
# =============================================================================

def _stepwise_fold(task: tuple) -> dict:
    fold, train, held_out, outcome, candidates, start = task
    selected, res, history = stepwise_aic(
        train, outcome, candidates, start=start, table=f"fold {fold} training rows"
    )
    predicted = res.predict(design_frame(held_out[selected]))
    metrics = regression_metrics(held_out[outcome].to_numpy(dtype=float), predicted)
    return {
        "fold": fold,
        "n_train": len(train),
        "n_test": len(held_out),
        **metrics,
        "n_selected": len(selected),
        "selected": tuple(selected),
        "history": history,
    }


@dataclass(frozen=True)
class StepwiseResult:
    """Selected stepwise model with its resampling record."""

    model: FittedModel
    history: Tuple[StepRecord, ...]
    selection_frequency: pd.Series = field(repr=False, compare=False)
    fold_selections: Dict[int, Tuple[str, ...]] = field(repr=False, compare=False)
    final_model: str = "refit"

    @property
    def selected(self) -> Tuple[str, ...]:
        return self.model.predictors

    @property
    def cv(self) -> Optional[CVSummary]:
        return self.model.cv

    def trace_frame(self) -> pd.DataFrame:
        return pd.DataFrame([r.__dict__ for r in self.history])


def fit_stepwise(
    train: pd.DataFrame,
    outcome: str = OUTCOME_COL,
    predictors: Optional[Sequence[str]] = None,
    config: Optional[FitConfig] = None,
    final_model: str = "refit",
    start: str = "full",
) -> StepwiseResult:
    """
    Cross-validated bidirectional stepwise selection on the training rows.

    Parameters
    ----------
    train : pd.DataFrame
        Training partition
    outcome : str
        Outcome column
    predictors : sequence of str, optional
        Candidate pool (default: every column but the outcome)
    config : FitConfig, optional
        Seed, fold count and worker-pool size
    final_model : {"refit", "best_fold"}
        Where the reported formula comes from
    start : {"full", "null"}
        Initial model of each search

    Returns
    -------
    StepwiseResult

    Raises
    ------
    NonConvergent
        When the reported formula is intercept-only; the null model is
        attached to the exception.
    """
    config = config or FitConfig()
    if final_model not in FINAL_MODEL_MODES:
        raise ValueError(f"final_model must be one of {FINAL_MODEL_MODES}, got {final_model!r}")
    if predictors is None:
        predictors = [c for c in train.columns if c != outcome]
    predictors = list(predictors)
    require_columns(train, [outcome] + predictors, table="training rows")
    if len(train) < config.n_folds * 2:
        raise InsufficientData(
            f"training rows: n={len(train)} too small for {config.n_folds}-fold cross-validation"
        )

    work = train[[outcome] + predictors].reset_index(drop=True)
    tasks = [
        (i, work.iloc[tr].copy(), work.iloc[te].copy(), outcome, predictors, start)
        for i, (tr, te) in enumerate(config.folds(len(work)), 1)
    ]
    rows = map_folds(_stepwise_fold, tasks, config.n_workers)

    folds = fold_frame([{k: v for k, v in r.items() if k not in ("selected", "history")} for r in rows])
    cv = CVSummary.from_folds(folds)
    fold_selections = {r["fold"]: r["selected"] for r in rows}
    frequency = pd.Series(
        {p: sum(p in sel for sel in fold_selections.values()) / len(rows) for p in predictors},
        name="selection_frequency",
    )

    if final_model == "refit":
        selected, res, history = stepwise_aic(work, outcome, predictors, start=start)
    else:
        best = min(rows, key=lambda r: (r["rmse"], r["fold"]))
        selected, history = list(best["selected"]), best["history"]
        res = fit_ols(work[outcome], work[selected])

    model = FittedModel("stepwise", outcome, tuple(selected), res, cv)
    if not selected:
        raise NonConvergent(
            f"training rows: no predictor of {predictors} lowers AIC below the "
            f"intercept-only model for '{outcome}'",
            model=model,
        )

    return StepwiseResult(
        model=model,
        history=tuple(history),
        selection_frequency=frequency,
        fold_selections=fold_selections,
        final_model=final_model,
    )
