"""
Shared constants for loading and modeling the distress survey data.
"""

from pathlib import Path

import numpy as np

# Directory paths
BASE_DIR = Path(__file__).resolve().parents[2]
DATA_DIR = BASE_DIR / "data"
OUTPUT_DIR = DATA_DIR / "outputs"
FIGURES_DIR = OUTPUT_DIR / "figures"

# Input files
OBSERVATION_FILE = "distress_observations.csv"
ITEM_FILE = "distress_items.csv"

# Outcome and identifier columns
OUTCOME_COL = "distress_score"
ID_ALIASES = {"subject_id", "subjectId", "participant_id", "participantId", "id", "ID"}

# Partitioning
DEFAULT_SEED = 123
DEFAULT_TRAIN_FRACTION = 0.75
STRATIFY_BINS = 5             # quantile groups of the outcome
MIN_ROWS_PER_BIN = 2          # each bin must reach both train and test

# Cross-validation and model fitting
DEFAULT_N_FOLDS = 10
DEFAULT_N_TREES = 500
LASSO_ALPHAS = 10 ** np.linspace(-3, 3, 100)
LASSO_MAX_ITER = 10000

# Presentation
PREDICTION_AXIS_LIMITS = (-2.2, 2.4)
COMPARISON_AXIS_LIMITS = (-0.2, 0.7)
CORRELATION_EDGE_THRESHOLD = 0.2
FIGURE_DPI = 160

# Reliability: reverse-scored distress items
REVERSE_KEYED_ITEMS = ["item_4", "item_7", "item_10"]
OMEGA_GROUP_FACTORS = 3
