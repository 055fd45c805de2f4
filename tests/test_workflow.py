import types
from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from imports_forecaster_src import config_utils
from imports_forecaster_src.exceptions import DomainError
from imports_forecaster_src.main import (
    PipelineContext, main, resolve_settings, run_imports_workflow, run_imports_workflow_from_csv,
    setup_cli_parser
)

SMALL_GRID = {"p_range": [0, 1], "q_range": [0, 1], "progress": False}


@pytest.fixture(autouse=True)
def _no_config(monkeypatch):
    monkeypatch.setattr(config_utils, "config_manager", None)


def test_resolve_settings_defaults():
    s = resolve_settings()
    assert s["p_range"] == [0, 1, 2, 3, 4]
    assert s["q_range"] == [0, 1, 2, 3, 4]
    assert s["d"] == 1
    assert s["horizon"] == 5
    assert s["confidence_level"] == 95.0
    assert s["boxcox"] is True
    assert s["clamp_bounds"] is False
    assert s["sweep_max_lag"] == 20


def test_resolve_settings_cli_overrides():
    args = types.SimpleNamespace(p_range="0-1", q_range="2", horizon=8, confidence=80.0,
                                 boxcox=False, clamp_bounds=True, maxiter=50)
    s = resolve_settings(args)
    assert s["p_range"] == [0, 1]
    assert s["q_range"] == [2]
    assert s["horizon"] == 8
    assert s["confidence_level"] == 80.0
    assert s["boxcox"] is False
    assert s["clamp_bounds"] is True
    assert s["maxiter"] == 50


def test_cli_parser_flags():
    parser = setup_cli_parser()
    args = parser.parse_args([])
    assert args.boxcox is None and args.clamp_bounds is None and args.no_plots is False
    args = parser.parse_args(["--no-boxcox", "--clamp-bounds", "--no-plots", "--horizon", "3",
                              "--confidence", "90", "--p-range", "0-2"])
    assert args.boxcox is False
    assert args.clamp_bounds is True
    assert args.no_plots is True
    assert args.horizon == 3
    assert args.confidence == 90.0
    assert args.p_range == "0-2"


def test_workflow_end_to_end(imports_csv: Path, short_imports_series: pd.Series, tmp_path: Path):
    out = tmp_path / "figures"
    ctx = run_imports_workflow_from_csv(imports_csv, out, settings=dict(SMALL_GRID, horizon=4))

    assert isinstance(ctx, PipelineContext)
    assert ctx.params.enabled
    assert len(ctx.transformed) == len(short_imports_series)
    assert len(ctx.differenced) == len(short_imports_series) - 1
    assert ctx.adf_level is not None and ctx.adf_differenced is not None

    assert len(ctx.grid) == 4
    usable = [r for r in ctx.grid if r.is_usable]
    assert ctx.best.aic == min(r.aic for r in usable)
    assert ctx.grid_frame["Model"].iloc[0] == ctx.best.candidate.label

    assert ctx.diagnostics is not None
    assert ctx.forecast.horizon == 4
    assert ctx.forecast.years.tolist() == [2020, 2021, 2022, 2023]
    assert np.all(ctx.forecast.lower_original < ctx.forecast.upper_original)

    for key in ("grid_csv", "forecast_csv", "report_md", "ljung_box_csv"):
        assert ctx.artifacts[key].exists(), key
    assert ctx.artifacts["plot_series"].exists()
    assert ctx.artifacts["plot_forecast"].exists()

    grid = pd.read_csv(ctx.artifacts["grid_csv"])
    assert len(grid) == 4
    fc = pd.read_csv(ctx.artifacts["forecast_csv"])
    assert fc["Year"].tolist() == [2020, 2021, 2022, 2023]

    report = ctx.artifacts["report_md"].read_text(encoding="utf-8")
    assert "## Selected model" in report
    assert "## Residual diagnostics" in report
    assert "| Year |" in report


def test_workflow_without_boxcox_or_plots(short_imports_series: pd.Series, tmp_path: Path):
    ctx = run_imports_workflow(short_imports_series, tmp_path, settings=dict(SMALL_GRID, boxcox=False),
                               make_plots=False, grid_csv=tmp_path / "grid" / "aic.csv")
    assert not ctx.params.enabled
    assert np.allclose(ctx.forecast.mean_original, ctx.forecast.mean_transformed)
    assert ctx.artifacts["grid_csv"] == tmp_path / "grid" / "aic.csv"
    assert not any(k.startswith("plot_") for k in ctx.artifacts)
    assert not list(tmp_path.glob("*.png"))


def test_workflow_rejects_non_positive_series_with_boxcox(tmp_path: Path):
    s = pd.Series(np.r_[5.0, 0.0, np.linspace(6.0, 20.0, 28)], index=np.arange(1990, 2020))
    with pytest.raises(DomainError):
        run_imports_workflow(s, tmp_path, settings=SMALL_GRID, make_plots=False)


def test_workflow_rejects_gapped_series(tmp_path: Path):
    s = pd.Series([1.0, 2.0, 3.0], index=[2000, 2001, 2005])
    with pytest.raises(ValueError):
        run_imports_workflow(s, tmp_path, settings=SMALL_GRID, make_plots=False)


def test_main_cli(imports_csv: Path, tmp_path: Path):
    out = tmp_path / "cli_out"
    main([
        "--data", str(imports_csv),
        "--figures-dir", str(out),
        "--p-range", "0-1",
        "--q-range", "0",
        "--horizon", "3",
        "--no-plots",
        "--grid-csv", "grid.csv",
        "--log-level", "WARNING",
    ])
    assert (out / "grid.csv").exists()
    assert len(pd.read_csv(out / "grid.csv")) == 2
    assert len(pd.read_csv(out / "forecast.csv")) == 3
    assert (out / "run_report.md").exists()
