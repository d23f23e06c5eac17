from __future__ import annotations

import json
from pathlib import Path

import pandas as pd
import pytest

from conftest import make_items, make_named
from covid_distress.__main__ import main
from covid_distress.errors import MissingColumn
from covid_distress.modeling import FitConfig
from covid_distress.pipeline import STAGES, PipelineConfig, run, stage_order

pytestmark = pytest.mark.integration

ALWAYS = [
    "descriptives.csv",
    "correlations.csv",
    "correlations_sig.csv",
    "partition.csv",
    "stepwise_trace.csv",
    "stepwise_selection.csv",
    "cv_folds.csv",
    "model_benchmark.csv",
    "refit_coefficients.csv",
    "rf_importance.csv",
    "lasso_coefficients.csv",
    "lasso_path.csv",
    "estimate_records.csv",
    "estimate_comparison.csv",
    "reliability.json",
    "omega_loadings.csv",
    "figures/prediction_scatter.png",
    "figures/coefficients.png",
    "figures/cv_vs_simple.png",
]


@pytest.fixture
def inputs(tmp_path: Path):
    obs = make_named(n=300)
    obs.insert(0, "participant_id", range(len(obs)))
    obs_path = tmp_path / "observations.csv"
    obs.to_csv(obs_path, index=False)

    items_path = tmp_path / "items.csv"
    make_items(n=300).to_csv(items_path, index=False)
    return obs_path, items_path


def _config(tmp_path: Path, inputs, **kwargs) -> PipelineConfig:
    obs_path, items_path = inputs
    return PipelineConfig(
        observations_path=obs_path,
        items_path=items_path,
        output_dir=tmp_path / "out",
        fit=FitConfig(seed=123, n_folds=5, n_workers=1, n_trees=30),
        **kwargs,
    )


def test_stage_order_resolves_prerequisites() -> None:
    assert stage_order() == list(STAGES)
    assert stage_order("refit") == ["partition", "stepwise", "refit"]
    assert stage_order("figures")[-1] == "figures"
    with pytest.raises(ValueError):
        stage_order("nonexistent")


def test_full_run_writes_artefacts(tmp_path: Path, inputs) -> None:
    config = _config(tmp_path, inputs)
    state = run(verbose=False, config=config)

    out = config.output_dir
    for name in ALWAYS:
        assert (out / name).exists(), name
    assert not (out / "regression_table.html").exists()
    assert not (out / "figures" / "correlation_network.png").exists()

    assert state.completed == list(STAGES)
    assert {"anxiety", "rumination"} <= set(state.stepwise.selected)
    assert "participant_id" not in state.predictors

    benchmark = pd.read_csv(out / "model_benchmark.csv", encoding="utf-8-sig")
    assert list(benchmark["method"]) == ["stepwise", "random_forest", "lasso"]
    assert {"cv_rmse", "cv_r2", "cv_mae", "test_correlation", "test_r2", "test_rmse", "test_mae"} <= set(benchmark)

    with open(out / "reliability.json", encoding="utf-8") as fh:
        reliability = json.load(fh)
    assert reliability["n_items"] == 12
    assert reliability["omega_hierarchical"] <= reliability["omega_total"]


def test_export_toggles_write_tables_and_graph(tmp_path: Path, inputs) -> None:
    config = _config(tmp_path, inputs, export_tables=True, export_graph=True)
    run(verbose=False, config=config)
    out = config.output_dir
    assert (out / "regression_table.html").exists()
    assert (out / "regression_table_apa.csv").exists()
    assert (out / "figures" / "correlation_network.png").exists()


def test_single_stage_runs_only_prerequisites(tmp_path: Path, inputs) -> None:
    config = _config(tmp_path, inputs)
    state = run(analysis="refit", verbose=False, config=config)
    assert state.completed == ["partition", "stepwise", "refit"]
    assert state.random_forest is None
    assert not (config.output_dir / "model_benchmark.csv").exists()

    state = run(analysis="compare", verbose=False, state=state)
    assert state.completed[-1] == "compare"
    assert state.completed.count("stepwise") == 1


def test_missing_item_table_skips_reliability(tmp_path: Path, inputs, capsys) -> None:
    config = _config(tmp_path, inputs)
    config.items_path = tmp_path / "absent.csv"
    state = run(analysis="reliability", verbose=True, config=config)
    assert state.reliability is None
    assert "[SKIP]" in capsys.readouterr().out


def test_errors_are_reported_and_reraised(tmp_path: Path, inputs, capsys) -> None:
    config = _config(tmp_path, inputs, outcome="not_a_column")
    with pytest.raises(MissingColumn):
        run(analysis="partition", verbose=False, config=config)
    assert "[ERROR] partition" in capsys.readouterr().out


def test_cli_runs_one_stage(tmp_path: Path, inputs) -> None:
    obs_path, items_path = inputs
    out = tmp_path / "cli"
    code = main([
        "-a", "partition", "-q",
        "--observations", str(obs_path),
        "--items", str(items_path),
        "--output", str(out),
        "--seed", "7",
        "--folds", "5",
        "--workers", "1",
    ])
    assert code == 0
    assert (out / "partition.csv").exists()


def test_cli_lists_stages(capsys) -> None:
    assert main(["--list"]) == 0
    assert "stepwise" in capsys.readouterr().out
