"""
Distress Analysis Pipeline
==========================

End-to-end run of the COVID-19 distress analysis as a registry of stages:

    descriptives -> partition -> stepwise -> benchmarks -> evaluate ->
    refit -> compare -> reliability -> figures

Each stage takes and returns the shared ``PipelineState``. Running one stage
runs its prerequisites first. Any error is reported as ``[ERROR] <stage>``
and re-raised; there is no partial-failure mode.

Usage:
    from covid_distress.pipeline import run, PipelineConfig
    state = run()                                  # all stages
    state = run(analysis="compare")                # compare + prerequisites
    state = run(config=PipelineConfig(export_tables=True, export_graph=True))

Output:
    <output_dir>/*.csv, reliability.json, figures/*.png
"""

from __future__ import annotations

import json
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from covid_distress.comparison import PREDICTOR_LOOKUP, EstimateComparison, compare_estimates
from covid_distress.modeling import (
    EvaluationResult,
    FitConfig,
    LassoResult,
    RandomForestResult,
    RefitResult,
    StepwiseResult,
    evaluate_model,
    fit_lasso,
    fit_random_forest,
    fit_stepwise,
    refit_full_data,
)
from covid_distress.preprocessing import (
    Partition,
    compute_descriptive_stats,
    correlation_table,
    load_item_table,
    load_observation_table,
    split_predictors,
    stratified_partition,
)
from covid_distress.preprocessing.constants import (
    DATA_DIR,
    DEFAULT_TRAIN_FRACTION,
    ITEM_FILE,
    OBSERVATION_FILE,
    OUTCOME_COL,
    OUTPUT_DIR,
    REVERSE_KEYED_ITEMS,
)
from covid_distress.reliability import ReliabilityResult, estimate_reliability
from covid_distress.utils import print_section_header


# =============================================================================
# CONFIGURATION / STATE
# =============================================================================

@dataclass
class PipelineConfig:
    """Inputs, outputs and switches for one pipeline run."""

    observations_path: Path = DATA_DIR / OBSERVATION_FILE
    items_path: Path = DATA_DIR / ITEM_FILE
    output_dir: Path = OUTPUT_DIR
    outcome: str = OUTCOME_COL
    train_fraction: float = DEFAULT_TRAIN_FRACTION
    fit: FitConfig = field(default_factory=FitConfig)
    final_model: str = "refit"
    lookup: Mapping = field(default_factory=lambda: dict(PREDICTOR_LOOKUP))
    keep_uncategorized: bool = False
    reverse_keys: Tuple[str, ...] = tuple(REVERSE_KEYED_ITEMS)
    export_tables: bool = False
    export_graph: bool = False

    @property
    def figures_dir(self) -> Path:
        return Path(self.output_dir) / "figures"


@dataclass
class PipelineState:
    """Everything produced so far in one run."""

    config: PipelineConfig
    observations: Optional[pd.DataFrame] = None
    predictors: List[str] = field(default_factory=list)
    descriptives: Optional[pd.DataFrame] = None
    correlations: Optional[pd.DataFrame] = None
    correlation_sig: Optional[pd.DataFrame] = None
    partition: Optional[Partition] = None
    train: Optional[pd.DataFrame] = None
    test: Optional[pd.DataFrame] = None
    stepwise: Optional[StepwiseResult] = None
    random_forest: Optional[RandomForestResult] = None
    lasso: Optional[LassoResult] = None
    evaluations: Dict[str, EvaluationResult] = field(default_factory=dict)
    benchmark: Optional[pd.DataFrame] = None
    refit: Optional[RefitResult] = None
    comparison: Optional[EstimateComparison] = None
    reliability: Optional[ReliabilityResult] = None
    completed: List[str] = field(default_factory=list)
    saved: List[Path] = field(default_factory=list)


def _load(state: PipelineState) -> pd.DataFrame:
    if state.observations is None:
        cfg = state.config
        state.observations = load_observation_table(cfg.observations_path, outcome=cfg.outcome)
        state.predictors = split_predictors(state.observations, cfg.outcome)
    return state.observations


def _save_csv(state: PipelineState, df: pd.DataFrame, name: str, verbose: bool, index: bool = False) -> Path:
    out_dir = Path(state.config.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / name
    df.to_csv(path, index=index, encoding="utf-8-sig")
    state.saved.append(path)
    if verbose:
        print(f"  Saved: {path}")
    return path


def _record(state: PipelineState, paths, verbose: bool) -> None:
    for path in paths:
        state.saved.append(Path(path))
        if verbose:
            print(f"  Saved: {path}")


# =============================================================================
# STAGE REGISTRY
# =============================================================================

@dataclass
class StageSpec:
    """Specification for a pipeline stage."""
    name: str
    description: str
    function: Callable
    requires: Tuple[str, ...]


STAGES: Dict[str, StageSpec] = {}


def register_stage(name: str, description: str, requires: Tuple[str, ...] = ()):
    """Decorator to register a stage function."""
    def decorator(func: Callable):
        STAGES[name] = StageSpec(
            name=name,
            description=description,
            function=func,
            requires=tuple(requires),
        )
        return func
    return decorator


def stage_order(name: Optional[str] = None) -> List[str]:
    """Registered stages to run for ``name`` (all when None), prerequisites first."""
    if name is None:
        return list(STAGES)
    if name not in STAGES:
        raise ValueError(f"Unknown analysis: {name}. Available: {list(STAGES.keys())}")

    order: List[str] = []

    def visit(stage: str) -> None:
        for dep in STAGES[stage].requires:
            visit(dep)
        if stage not in order:
            order.append(stage)

    visit(name)
    return order


# =============================================================================
# STAGES
# =============================================================================

@register_stage("descriptives", "Table-1 descriptives and predictor correlation matrix")
def stage_descriptives(state: PipelineState, verbose: bool = True) -> PipelineState:
    obs = _load(state)
    labels = {p: info.label for p, info in state.config.lookup.items()}
    state.descriptives = compute_descriptive_stats(obs, labels=labels)
    state.correlations, state.correlation_sig = correlation_table(obs)

    if verbose:
        print(f"  Observation table: {len(obs)} rows x {len(state.predictors)} predictors")
    _save_csv(state, state.descriptives, "descriptives.csv", verbose)
    _save_csv(state, state.correlations, "correlations.csv", verbose, index=True)
    _save_csv(state, state.correlation_sig, "correlations_sig.csv", verbose)
    return state


@register_stage("partition", "Seeded outcome-stratified train/test split")
def stage_partition(state: PipelineState, verbose: bool = True) -> PipelineState:
    obs = _load(state)
    cfg = state.config
    state.partition = stratified_partition(obs, cfg.outcome, p=cfg.train_fraction, seed=cfg.fit.seed)
    state.train = state.partition.train(obs)
    state.test = state.partition.test(obs)

    if verbose:
        print(f"  Train: {len(state.train)}  Test: {len(state.test)}  (p={cfg.train_fraction}, seed={cfg.fit.seed})")
    _save_csv(state, state.partition.to_frame(), "partition.csv", verbose)
    return state


@register_stage("stepwise", "10-fold cross-validated bidirectional AIC stepwise OLS", requires=("partition",))
def stage_stepwise(state: PipelineState, verbose: bool = True) -> PipelineState:
    cfg = state.config
    state.stepwise = fit_stepwise(
        state.train, cfg.outcome, state.predictors, config=cfg.fit, final_model=cfg.final_model
    )
    cv = state.stepwise.cv

    if verbose:
        print(f"  Formula: {state.stepwise.model.formula}")
        print(f"  CV RMSE = {cv.rmse:.3f} (SD {cv.rmse_sd:.3f}), R² = {cv.r2:.3f}, MAE = {cv.mae:.3f}")
    _save_csv(state, state.stepwise.trace_frame(), "stepwise_trace.csv", verbose)
    freq = state.stepwise.selection_frequency.rename_axis("predictor").reset_index()
    _save_csv(state, freq, "stepwise_selection.csv", verbose)
    return state


@register_stage("benchmarks", "Random forest and lasso on the same folds", requires=("partition",))
def stage_benchmarks(state: PipelineState, verbose: bool = True) -> PipelineState:
    cfg = state.config
    state.random_forest = fit_random_forest(state.train, cfg.outcome, state.predictors, config=cfg.fit)
    state.lasso = fit_lasso(state.train, cfg.outcome, state.predictors, config=cfg.fit)

    if verbose:
        rf_cv, la_cv = state.random_forest.model.cv, state.lasso.model.cv
        print(f"  Random forest: max_features={state.random_forest.best_max_features}, CV RMSE = {rf_cv.rmse:.3f}")
        print(f"  Lasso: alpha={state.lasso.best_alpha:.4g}, CV RMSE = {la_cv.rmse:.3f}, "
              f"{int(state.lasso.coefficients['selected'].sum())} non-zero")
    _save_csv(state, state.random_forest.importance, "rf_importance.csv", verbose)
    _save_csv(state, state.lasso.coefficients, "lasso_coefficients.csv", verbose)
    _save_csv(state, state.lasso.path, "lasso_path.csv", verbose)
    return state


@register_stage("evaluate", "Test-split correlation / R² / RMSE / MAE per model",
                requires=("stepwise", "benchmarks"))
def stage_evaluate(state: PipelineState, verbose: bool = True) -> PipelineState:
    models = {
        "stepwise": state.stepwise.model,
        "random_forest": state.random_forest.model,
        "lasso": state.lasso.model,
    }
    rows, folds = [], []
    for method, model in models.items():
        result = evaluate_model(model, state.test)
        state.evaluations[method] = result
        rows.append({"method": method, "n_predictors": len(model.predictors),
                     **model.cv.as_dict(), **result.as_dict()})
        folds.append(model.cv.folds.assign(method=method))

    state.benchmark = pd.DataFrame(rows)
    if verbose:
        for row in rows:
            print(f"  {row['method']:<14} test r = {row['test_correlation']:.3f}  "
                  f"R² = {row['test_r2']:.3f}  RMSE = {row['test_rmse']:.3f}")
    _save_csv(state, state.benchmark, "model_benchmark.csv", verbose)
    cv_folds = pd.concat(folds, ignore_index=True)
    _save_csv(state, cv_folds[["method", "fold", "n", "correlation", "r2", "rmse", "mae"]],
              "cv_folds.csv", verbose)
    return state


@register_stage("refit", "Full-data OLS refit of the selected formula", requires=("stepwise",))
def stage_refit(state: PipelineState, verbose: bool = True) -> PipelineState:
    obs = _load(state)
    state.refit = refit_full_data(obs, state.stepwise.selected, state.config.outcome)

    if verbose:
        print(f"  N = {state.refit.n}, R² = {state.refit.r2:.3f}, adj. R² = {state.refit.adj_r2:.3f}")
    _save_csv(state, state.refit.coefficients, "refit_coefficients.csv", verbose)
    return state


@register_stage("compare", "Cross-validated vs simple estimates by category", requires=("refit",))
def stage_compare(state: PipelineState, verbose: bool = True) -> PipelineState:
    cfg = state.config
    state.comparison = compare_estimates(
        state.refit,
        _load(state),
        cfg.outcome,
        lookup=cfg.lookup,
        keep_uncategorized=cfg.keep_uncategorized,
        predictors=state.predictors,
    )
    if verbose:
        counts = state.comparison.counts()
        dropped = sorted(set(state.refit.predictors) - set(state.comparison.comparison["predictor"]))
        print(f"  Over-estimates: {counts['over_estimate']}  Under-estimates: {counts['under_estimate']}  "
              f"Unclassified: {counts['unclassified']}")
        if dropped:
            print(f"  [WARNING] Selected predictors without a category: {dropped}")
    _save_csv(state, state.comparison.records, "estimate_records.csv", verbose)
    _save_csv(state, state.comparison.comparison, "estimate_comparison.csv", verbose)
    return state


@register_stage("reliability", "Cronbach's alpha and bifactor omega of the distress items")
def stage_reliability(state: PipelineState, verbose: bool = True) -> PipelineState:
    cfg = state.config
    items_path = Path(cfg.items_path)
    if not items_path.exists():
        if verbose:
            print(f"  [SKIP] Item table not found: {items_path}")
        return state

    items = load_item_table(items_path)
    state.reliability = estimate_reliability(items, reverse_keys=cfg.reverse_keys)
    summary = state.reliability.summary()

    if verbose:
        print(f"  Cronbach's alpha = {summary['cronbach_alpha']:.3f} ({summary['interpretation']})")
        print(f"  Omega hierarchical = {summary['omega_hierarchical']:.3f}, "
              f"omega total = {summary['omega_total']:.3f}")

    out_dir = Path(cfg.output_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    json_path = out_dir / "reliability.json"
    with open(json_path, "w", encoding="utf-8") as fh:
        json.dump(summary, fh, indent=2)
    _record(state, [json_path], verbose)
    _save_csv(state, state.reliability.omega.loadings, "omega_loadings.csv", verbose, index=True)
    return state


@register_stage("figures", "Prediction scatter, coefficient bars, CV-vs-simple scatter; optional tables/graph",
                requires=("descriptives", "evaluate", "compare"))
def stage_figures(state: PipelineState, verbose: bool = True) -> PipelineState:
    # Delayed import: plotting pulls in matplotlib
    from covid_distress.visualization import (
        build_correlation_graph,
        export_regression_tables,
        network_summary,
        plot_coefficients,
        plot_correlation_network,
        plot_cv_vs_simple,
        plot_prediction_scatter,
    )

    cfg = state.config
    fig_dir = cfg.figures_dir

    plot_prediction_scatter(state.evaluations["stepwise"], fig_dir / "prediction_scatter.png")
    plot_coefficients(state.refit.coefficients, fig_dir / "coefficients.png", lookup=cfg.lookup)
    plot_cv_vs_simple(state.comparison.comparison, fig_dir / "cv_vs_simple.png")
    _record(state, [fig_dir / "prediction_scatter.png", fig_dir / "coefficients.png",
                    fig_dir / "cv_vs_simple.png"], verbose)

    if cfg.export_tables:
        _record(state, export_regression_tables(state.refit, cfg.output_dir, lookup=cfg.lookup), verbose)
    elif verbose:
        print("  [SKIP] Regression tables (export_tables=False)")

    if cfg.export_graph:
        graph = build_correlation_graph(state.correlations, columns=state.predictors, lookup=cfg.lookup)
        plot_correlation_network(graph, fig_dir / "correlation_network.png", seed=cfg.fit.seed)
        _record(state, [fig_dir / "correlation_network.png"], verbose)
        if verbose:
            info = network_summary(graph)
            print(f"  Network: {info['n_nodes']} nodes, {info['n_edges']} edges (|r| > threshold)")
    elif verbose:
        print("  [SKIP] Correlation network (export_graph=False)")
    return state


# =============================================================================
# MAIN RUNNER
# =============================================================================

def run(
    analysis: Optional[str] = None,
    verbose: bool = True,
    config: Optional[PipelineConfig] = None,
    state: Optional[PipelineState] = None,
) -> PipelineState:
    """
    Run one stage (with its prerequisites) or the whole pipeline.

    Parameters
    ----------
    analysis : str, optional
        Registered stage name; None runs every stage
    verbose : bool
        Print progress
    config : PipelineConfig, optional
        Run configuration (ignored when ``state`` is given)
    state : PipelineState, optional
        Earlier state to continue from; completed stages are not rerun

    Returns
    -------
    PipelineState
    """
    warnings.filterwarnings("ignore", category=FutureWarning)
    warnings.filterwarnings("ignore", module="statsmodels")
    warnings.filterwarnings("ignore", module="sklearn")

    if state is None:
        state = PipelineState(config=config or PipelineConfig())
    order = stage_order(analysis)

    if verbose:
        print("=" * 70)
        print("COVID-19 DISTRESS ANALYSIS")
        print("=" * 70)

    for name in order:
        if name in state.completed:
            continue
        spec = STAGES[name]
        if verbose:
            print_section_header(f"[{name.upper()}] {spec.description}")
        try:
            state = spec.function(state, verbose=verbose)
        except Exception as e:
            print(f"[ERROR] {name}: {e}")
            raise
        state.completed.append(name)

    if verbose:
        print("\n" + "=" * 70)
        print("ANALYSIS COMPLETE")
        print(f"Output directory: {state.config.output_dir}")
        print("=" * 70)

    return state


def list_stages():
    """List available stages."""
    print("\nAvailable stages:")
    print("-" * 60)
    for name, spec in STAGES.items():
        requires = f" (requires: {', '.join(spec.requires)})" if spec.requires else ""
        print(f"  {name}{requires}")
        print(f"    {spec.description}")
