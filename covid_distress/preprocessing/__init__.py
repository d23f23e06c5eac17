"""
Preprocessing
=============

Dataset loading, outcome-stratified partitioning, and descriptive summaries.

    from covid_distress.preprocessing import load_observation_table, stratified_partition
    obs = load_observation_table()
    part = stratified_partition(obs, p=0.75, seed=123)
"""

from .constants import (
    DATA_DIR,
    OUTPUT_DIR,
    FIGURES_DIR,
    OUTCOME_COL,
    ID_ALIASES,
    DEFAULT_SEED,
    DEFAULT_TRAIN_FRACTION,
    DEFAULT_N_FOLDS,
    REVERSE_KEYED_ITEMS,
)

from .loaders import (
    load_observation_table,
    load_item_table,
    strip_identifiers,
    split_predictors,
)

from .partition import (
    Partition,
    stratified_partition,
    outcome_bins,
)

from .descriptives import (
    compute_descriptive_stats,
    correlation_table,
    pearson_with_ci,
)

__all__ = [
    # Constants
    "DATA_DIR",
    "OUTPUT_DIR",
    "FIGURES_DIR",
    "OUTCOME_COL",
    "ID_ALIASES",
    "DEFAULT_SEED",
    "DEFAULT_TRAIN_FRACTION",
    "DEFAULT_N_FOLDS",
    "REVERSE_KEYED_ITEMS",
    # Loading
    "load_observation_table",
    "load_item_table",
    "strip_identifiers",
    "split_predictors",
    # Partitioning
    "Partition",
    "stratified_partition",
    "outcome_bins",
    # Descriptives
    "compute_descriptive_stats",
    "correlation_table",
    "pearson_with_ci",
]
