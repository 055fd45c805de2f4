# imports_forecaster_src/main.py

"""
ARIMA modeling and forecasting of an annual imports series.

This is the main entry point for the imports forecasting workflow.

Purpose
-------
- Load an annual imports series (Year, Imports) from CSV
- Estimate and apply a Box-Cox variance-stabilizing transform (can be disabled)
- Difference once and check stationarity with ADF on levels and first differences
- Grid-search ARIMA(p, 1, q) over p, q in 0..4 by maximum likelihood
- Select the best order by AIC (ties on BIC, then lowest p, then lowest q)
- Validate the residuals (Ljung-Box, Shapiro-Wilk, ARCH) and sweep Ljung-Box lags 1..20
- Forecast h years ahead with psi-weight prediction intervals, inverted to the original scale
- Save figures, CSV tables and a markdown run report to the figures/ directory

Configuration-Driven Workflow
-----------------------------
Model parameters, diagnostic settings and forecast options are read from
config/model_config.yaml. CLI arguments override configuration values where
applicable.
"""

import argparse
import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from diagnostics import DiagnosticReport, diagnose

from .config_utils import initialize_config, get_config_value
from .data_utils import load_imports_csv, validate_annual_series
from .parsing_utils import (
    parse_range_arg, validate_horizon, validate_confidence_level, validate_log_level
)
from .transform_utils import fit_transform, difference
from .stationarity_utils import AdfResult, check_stationarity
from .forecasting_utils import search_grid, results_to_frame, select_best, forecast
from .models import FitResult, ForecastResult, TransformParameters
from .plotting_utils import (
    plot_series, plot_acf_pacf, plot_model_diagnostics, plot_qq,
    plot_ljungbox_sweep, plot_forecast_overlay
)
from .report_utils import (
    format_transform_summary, format_adf_summary, format_grid_table,
    format_selection_summary, format_diagnostic_summary, format_forecast_summary
)
from .file_utils import ensure_dir, resolve_path, save_frame_csv, append_eval_md, md_table_from_df

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    """Everything one workflow run produced, stage by stage."""

    raw: pd.Series
    params: Optional[TransformParameters] = None
    transformed: Optional[pd.Series] = None
    differenced: Optional[pd.Series] = None
    adf_level: Optional[AdfResult] = None
    adf_differenced: Optional[AdfResult] = None
    grid: List[FitResult] = field(default_factory=list)
    grid_frame: Optional[pd.DataFrame] = None
    best: Optional[FitResult] = None
    diagnostics: Optional[DiagnosticReport] = None
    forecast: Optional[ForecastResult] = None
    settings: Dict[str, Any] = field(default_factory=dict)
    artifacts: Dict[str, Path] = field(default_factory=dict)


def resolve_settings(args: Optional[argparse.Namespace] = None) -> Dict[str, Any]:
    """
    Collect workflow settings with CLI > config file > default precedence.

    Parameters
    ----------
    args : Optional[argparse.Namespace]
        Parsed CLI arguments; attributes left at None fall through to the config

    Returns
    -------
    Dict[str, Any]
        Flat settings dictionary consumed by ``run_imports_workflow``
    """
    p_cli = getattr(args, "p_range", None) if args is not None else None
    q_cli = getattr(args, "q_range", None) if args is not None else None

    return {
        "p_range": parse_range_arg(p_cli, config_key="model.search_space.p_range"),
        "q_range": parse_range_arg(q_cli, config_key="model.search_space.q_range"),
        "d": int(get_config_value("model.fixed_parameters.d", 1)),
        "maxiter": int(get_config_value("model.fit.maxiter", 200, args, "maxiter")),
        "method": str(get_config_value("model.fit.method", "lbfgs")),
        "boxcox": bool(get_config_value("transform.boxcox.enabled", True, args, "boxcox")),
        "adf_alpha": float(get_config_value("stationarity.alpha", 0.05)),
        "adf_autolag": get_config_value("stationarity.autolag", "AIC"),
        "significance_level": float(get_config_value("diagnostics.significance_level", 0.05)),
        "ljung_box_lags": int(get_config_value("diagnostics.ljung_box_lags", 10)),
        "sweep_max_lag": int(get_config_value("diagnostics.ljung_box_sweep_max_lag", 20)),
        "arch_lags": int(get_config_value("diagnostics.arch_lags", 5)),
        "horizon": validate_horizon(get_config_value("forecast.horizon", 5, args, "horizon")),
        "confidence_level": validate_confidence_level(
            get_config_value("forecast.confidence_level", 95, args, "confidence")
        ),
        "clamp_bounds": bool(get_config_value("forecast.clamp_bounds", False, args, "clamp_bounds")),
        "progress": True,
    }


def _safe_plot(name: str, func: Callable, *args, **kwargs) -> bool:
    """Render one figure; a failure is logged and does not stop the run."""
    try:
        func(*args, **kwargs)
        return True
    except Exception as e:
        logger.warning("Failed to render %s: %s", name, e)
        return False


def _render_figures(ctx: PipelineContext, figures_dir: Path, ylabel: str) -> None:
    s = ctx.settings
    plots = [
        ("series", "imports_series.png", plot_series,
         (ctx.raw,), {"title": "Annual imports", "ylabel": ylabel}),
        ("transformed", "imports_transformed.png", plot_series,
         (ctx.transformed,), {"title": f"Transformed series ({ctx.params.describe()})", "ylabel": "Transformed"}),
        ("differenced", "imports_differenced.png", plot_series,
         (ctx.differenced,), {"title": "First difference of transformed series", "ylabel": "Difference"}),
        ("acf_pacf", "acf_pacf_differenced.png", plot_acf_pacf,
         (ctx.differenced,), {"title_prefix": "Differenced "}),
        ("model_diagnostics", "model_diagnostics.png", plot_model_diagnostics,
         (ctx.best.result,), {}),
        ("qq", "residual_qq.png", plot_qq,
         (ctx.best.residuals,), {}),
        ("ljung_box_sweep", "ljung_box_sweep.png", plot_ljungbox_sweep,
         (ctx.diagnostics.ljung_box_sweep,), {"alpha": s.get("significance_level", 0.05)}),
        ("forecast", "forecast.png", plot_forecast_overlay,
         (ctx.raw, ctx.forecast), {"ylabel": ylabel,
                                   "title": f"{ctx.best.candidate.label} forecast"}),
    ]
    for name, filename, func, args, kwargs in plots:
        out_path = figures_dir / filename
        if name == "ljung_box_sweep" and ctx.diagnostics.ljung_box_sweep.empty:
            logger.warning("Ljung-Box sweep is empty; skipping %s", filename)
            continue
        if _safe_plot(name, func, *args, out_path, **kwargs):
            ctx.artifacts[f"plot_{name}"] = out_path


def _write_report(ctx: PipelineContext, report_md: Path) -> None:
    """Append the run sections to the markdown report."""
    append_eval_md(report_md, "Transform", format_transform_summary(ctx.params, len(ctx.raw)))
    append_eval_md(
        report_md, "Stationarity (ADF)",
        "```\n" + format_adf_summary("transformed level", ctx.adf_level) + "\n\n"
        + format_adf_summary("first difference", ctx.adf_differenced) + "\n```"
    )
    append_eval_md(report_md, "ARIMA grid search (sorted by AIC)",
                   md_table_from_df(ctx.grid_frame, max_rows=len(ctx.grid_frame)))
    append_eval_md(report_md, "Selected model", format_selection_summary(ctx.best))
    append_eval_md(report_md, "Residual diagnostics",
                   md_table_from_df(ctx.diagnostics.summary_frame()))
    append_eval_md(report_md, "Forecast",
                   md_table_from_df(ctx.forecast.to_frame(), index=True))


def run_imports_workflow(series: pd.Series,
                         figures_dir: Path,
                         args: Optional[argparse.Namespace] = None,
                         settings: Optional[Dict[str, Any]] = None,
                         make_plots: bool = True,
                         grid_csv: Optional[Path] = None,
                         report_md: Optional[Path] = None,
                         ylabel: str = "Imports") -> PipelineContext:
    """
    Run transform, stationarity, grid search, selection, diagnostics and forecast.

    Parameters
    ----------
    series : pd.Series
        Annual values indexed by integer year
    figures_dir : Path
        Output directory for figures, CSV tables and the run report (created if missing)
    args : Optional[argparse.Namespace]
        CLI arguments; used to resolve settings when ``settings`` is not given
    settings : Optional[Dict[str, Any]]
        Overrides on top of the resolved settings (see ``resolve_settings``)
    make_plots : bool, default=True
        Render PNG figures
    grid_csv : Optional[Path]
        Grid results CSV path (defaults to ``figures_dir / 'grid_search.csv'``)
    report_md : Optional[Path]
        Markdown report path (defaults to ``figures_dir / 'run_report.md'``)
    ylabel : str, default="Imports"
        Axis label for original-scale figures

    Returns
    -------
    PipelineContext
        All intermediate and final results plus the paths written

    Raises
    ------
    DomainError
        If the series is not strictly positive with Box-Cox enabled, or the
        point forecast cannot be mapped back to the original scale
    EmptySetError
        If no ARIMA candidate converged

    Workflow
    --------
    - Box-Cox transform (lambda by MLE) unless disabled
    - ADF on the transformed level and its d-th difference
    - Grid search ARIMA(p, d, q); failed candidates kept with AIC = +inf
    - Select by (AIC, BIC, p, q); diagnose residuals of the selected fit
    - Forecast ``horizon`` years with ``confidence_level`` intervals
    """
    resolved = resolve_settings(args)
    if settings:
        resolved.update(settings)
    s = resolved

    ctx = PipelineContext(raw=validate_annual_series(series), settings=s)
    logger.info("Starting imports workflow on %d observations (%d-%d)",
                len(ctx.raw), ctx.raw.index[0], ctx.raw.index[-1])

    # Transform and stationarity
    ctx.transformed, ctx.params = fit_transform(ctx.raw, enabled=s["boxcox"])
    ctx.differenced = difference(ctx.transformed, s["d"])
    ctx.adf_level, ctx.adf_differenced = check_stationarity(
        ctx.transformed, ctx.differenced, alpha=s["adf_alpha"], autolag=s["adf_autolag"]
    )

    # Grid search and selection
    logger.info("Grid searching %d x %d ARIMA orders with d=%d",
                len(s["p_range"]), len(s["q_range"]), s["d"])
    ctx.grid = search_grid(
        ctx.transformed, s["p_range"], s["q_range"], d=s["d"],
        maxiter=s["maxiter"], method=s["method"],
        ljung_box_lags=s["ljung_box_lags"], progress=s["progress"],
    )
    ctx.grid_frame = results_to_frame(ctx.grid)
    ctx.best = select_best(ctx.grid)
    logger.info("Grid search results:\n%s", format_grid_table(ctx.grid_frame))
    logger.info("%s", format_selection_summary(ctx.best))

    # Residual diagnostics
    ctx.diagnostics = diagnose(
        ctx.best.residuals,
        significance_level=s["significance_level"],
        ljung_box_lags=s["ljung_box_lags"],
        sweep_max_lag=s["sweep_max_lag"],
        arch_lags=s["arch_lags"],
    )
    logger.info("%s", format_diagnostic_summary(ctx.diagnostics))

    # Forecast
    ctx.forecast = forecast(
        ctx.best, s["horizon"], ctx.params,
        confidence_level=s["confidence_level"],
        clamp_bounds=s["clamp_bounds"],
        last_year=int(ctx.raw.index[-1]),
    )
    logger.info("%s", format_forecast_summary(ctx.forecast))

    # Artifacts
    ensure_dir(figures_dir)
    ctx.artifacts["grid_csv"] = save_frame_csv(ctx.grid_frame, grid_csv or figures_dir / "grid_search.csv")
    if not ctx.diagnostics.ljung_box_sweep.empty:
        ctx.artifacts["ljung_box_csv"] = save_frame_csv(
            ctx.diagnostics.ljung_box_sweep, figures_dir / "ljung_box_sweep.csv", index=True
        )
    ctx.artifacts["forecast_csv"] = save_frame_csv(
        ctx.forecast.to_frame(), figures_dir / "forecast.csv", index=True
    )

    report_path = report_md or figures_dir / "run_report.md"
    _write_report(ctx, report_path)
    ctx.artifacts["report_md"] = report_path

    if make_plots:
        _render_figures(ctx, figures_dir, ylabel)

    logger.info("Imports workflow completed; %d artifact(s) written to %s", len(ctx.artifacts), figures_dir)
    return ctx


def run_imports_workflow_from_csv(series_path: Path,
                                  figures_dir: Path,
                                  args: Optional[argparse.Namespace] = None,
                                  year_col: str = "Year",
                                  value_col: str = "Imports",
                                  **kwargs) -> PipelineContext:
    """
    Load an imports CSV and run the workflow on it.

    Extra keyword arguments are forwarded to ``run_imports_workflow``.
    """
    series = load_imports_csv(series_path, year_col=year_col, value_col=value_col)
    kwargs.setdefault("ylabel", value_col)
    return run_imports_workflow(series, figures_dir, args=args, **kwargs)


def setup_cli_parser() -> argparse.ArgumentParser:
    """
    Set up the command-line argument parser.

    Options left unset fall back to config/model_config.yaml.

    Returns
    -------
    argparse.ArgumentParser
        Configured argument parser
    """
    parser = argparse.ArgumentParser(
        description="ARIMA modeling and forecasting of an annual imports series."
    )

    # Data and output arguments
    parser.add_argument(
        "--data", type=str, default="data/imports.csv",
        help="Path to CSV with a year column and an imports column."
    )
    parser.add_argument(
        "--year-col", type=str, default=None,
        help="Name of the year column. Uses config default if not specified."
    )
    parser.add_argument(
        "--value-col", type=str, default=None,
        help="Name of the value column. Uses config default if not specified."
    )
    parser.add_argument(
        "--figures-dir", type=str, default="figures",
        help="Directory to write figures, CSV tables and the run report."
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity level."
    )

    # Model arguments
    parser.add_argument(
        "--p-range", type=str, default=None,
        help="Range or list for AR order p (e.g. '0-4' or '0,1,2'). Uses config default if not specified."
    )
    parser.add_argument(
        "--q-range", type=str, default=None,
        help="Range or list for MA order q. Uses config default if not specified."
    )
    parser.add_argument(
        "--maxiter", type=int, default=None,
        help="Maximum optimizer iterations per candidate fit."
    )
    parser.add_argument(
        "--no-boxcox", dest="boxcox", action="store_false", default=None,
        help="Disable the Box-Cox transform and model raw values."
    )

    # Forecast arguments
    parser.add_argument(
        "--horizon", type=int, default=None,
        help="Number of years to forecast."
    )
    parser.add_argument(
        "--confidence", type=float, default=None,
        help="Two-sided prediction interval level in percent (e.g. 95)."
    )
    parser.add_argument(
        "--clamp-bounds", action="store_true", default=None,
        help="Clamp interval bounds whose inverse Box-Cox is undefined instead of failing."
    )

    # Output arguments
    parser.add_argument(
        "--grid-csv", type=str, default=None,
        help="Optional CSV path for grid results (relative to figures-dir if not absolute)."
    )
    parser.add_argument(
        "--report-md", type=str, default=None,
        help="Optional markdown report path (relative to figures-dir if not absolute)."
    )
    parser.add_argument(
        "--no-plots", action="store_true",
        help="Skip figure rendering."
    )

    return parser


def setup_logging(log_level: str) -> None:
    """
    Configure logging with specified level and warning filters.

    Parameters
    ----------
    log_level : str
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = validate_log_level(log_level)
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        datefmt="%H:%M:%S",
    )

    # Configure warnings based on log level
    if level == "DEBUG":
        warnings.resetwarnings()
        warnings.filterwarnings("default")
    else:
        from statsmodels.tools.sm_exceptions import ConvergenceWarning
        warnings.filterwarnings("ignore", category=ConvergenceWarning)
        warnings.filterwarnings("ignore", category=FutureWarning)
        warnings.filterwarnings("ignore", category=UserWarning, module="statsmodels")


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point for the ARIMA imports forecaster.

    Parses CLI arguments, resolves paths against the project root and runs the
    workflow on the requested CSV.
    """
    # Initialize configuration system early
    initialize_config()

    # Parse CLI arguments
    parser = setup_cli_parser()
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.log_level)

    # Resolve paths
    base_dir = Path(__file__).resolve().parent.parent  # Go up from imports_forecaster_src to project root
    data_path = resolve_path(args.data, base_dir)
    figures_dir = resolve_path(args.figures_dir, base_dir)

    grid_csv = resolve_path(args.grid_csv, figures_dir) if args.grid_csv else None
    report_md = resolve_path(args.report_md, figures_dir) if args.report_md else None

    year_col = get_config_value("data.year_column", "Year", args, "year_col")
    value_col = get_config_value("data.value_column", "Imports", args, "value_col")

    run_imports_workflow_from_csv(
        data_path, figures_dir, args=args,
        year_col=year_col, value_col=value_col,
        make_plots=not args.no_plots,
        grid_csv=grid_csv,
        report_md=report_md,
    )


if __name__ == "__main__":
    main()
