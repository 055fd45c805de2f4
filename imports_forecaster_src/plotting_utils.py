# imports_forecaster_src/plotting_utils.py

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from pathlib import Path
from typing import Optional, Union
import logging

from scipy import stats
from statsmodels.graphics.tsaplots import plot_acf, plot_pacf

from .file_utils import ensure_dir
from .models import ForecastResult

logger = logging.getLogger(__name__)


def plot_series(series: pd.Series, out_path: Path, title: str, ylabel: str = "Imports") -> None:
    """
    Render and save a single annual series as a line plot.

    Parameters
    ----------
    series : pd.Series
        Values indexed by year
    out_path : Path
        File path to save the rendered PNG (parents are created if missing)
    title : str
        Plot title
    ylabel : str, default="Imports"
        Y-axis label
    """
    ensure_dir(out_path.parent)
    fig, ax = plt.subplots(figsize=(9, 4))
    ax.plot(series.index, series.values, color="black", linewidth=1.2, marker="o", markersize=2.5)
    ax.set_xlabel("Year")
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    fig.savefig(out_path, dpi=300)
    plt.close(fig)


def plot_acf_pacf(series: pd.Series, out_path: Path, title_prefix: str = "", max_lags: int = 20) -> None:
    """
    Create and save stacked ACF and PACF plots.

    The lag count is capped below half the sample size, which the PACF
    estimator requires.
    """
    ensure_dir(out_path.parent)
    s = pd.Series(series).dropna()
    lags = int(max(1, min(max_lags, len(s) // 2 - 1)))

    fig, axes = plt.subplots(2, 1, figsize=(8, 6), dpi=150)
    plot_acf(s, ax=axes[0], lags=lags, zero=False)
    axes[0].set_title(f"{title_prefix}ACF".strip())
    plot_pacf(s, ax=axes[1], lags=lags, zero=False, method="ywm")
    axes[1].set_title(f"{title_prefix}PACF".strip())
    fig.tight_layout()
    fig.savefig(out_path, dpi=300)
    plt.close(fig)


def plot_model_diagnostics(results, out_path: Path) -> None:
    """
    Save the statsmodels four-panel residual diagnostics for a fitted model.

    Parameters
    ----------
    results : SARIMAXResults
        Fitted statsmodels results object
    out_path : Path
        Output PNG path
    """
    ensure_dir(out_path.parent)
    n_resid = int(np.asarray(results.resid).size)
    lags = int(max(1, min(10, n_resid // 2 - 1)))
    fig = results.plot_diagnostics(figsize=(10, 8), lags=lags)
    fig.savefig(out_path, dpi=300)
    plt.close(fig)


def plot_qq(residuals: Union[pd.Series, np.ndarray], out_path: Path, title: str = "Residual Q-Q Plot (Normal)") -> None:
    """Normal Q-Q plot of residuals."""
    ensure_dir(out_path.parent)
    fig, ax = plt.subplots(figsize=(6, 6))
    stats.probplot(pd.Series(residuals).dropna(), dist="norm", plot=ax)
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    fig.savefig(out_path, dpi=300)
    plt.close(fig)


def plot_ljungbox_sweep(sweep: pd.DataFrame, out_path: Path, alpha: float = 0.05) -> None:
    """
    Bar chart of Ljung-Box p-values by lag with the significance threshold.

    Parameters
    ----------
    sweep : pd.DataFrame
        Indexed by lag with an 'lb_pvalue' column
    out_path : Path
        Output PNG path
    alpha : float, default=0.05
        Threshold drawn as a dashed line
    """
    if sweep is None or sweep.empty:
        logger.warning("No Ljung-Box sweep data provided; skipping plot")
        return

    ensure_dir(out_path.parent)
    lags = np.asarray(sweep.index, dtype=int)
    pvals = sweep["lb_pvalue"].to_numpy(dtype=float)
    colors = ["tab:green" if p > alpha else "tab:red" for p in pvals]

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.bar(lags, pvals, color=colors, alpha=0.8)
    ax.axhline(alpha, color="gray", linestyle="--", linewidth=1, label=f"p = {alpha}")
    ax.set_xticks(lags)
    ax.set_ylim(0.0, 1.05)
    ax.set_xlabel("Lag")
    ax.set_ylabel("Ljung-Box p-value")
    ax.set_title("Ljung-Box p-values by lag")
    ax.legend()
    plt.tight_layout()
    fig.savefig(out_path, dpi=300)
    plt.close(fig)


def plot_forecast_overlay(history: pd.Series,
                          fc: ForecastResult,
                          out_path: Path,
                          ylabel: str = "Imports",
                          title: Optional[str] = None) -> None:
    """
    Overlay the original-scale forecast and its interval band on the observed series.

    Parameters
    ----------
    history : pd.Series
        Observed values on the original scale, indexed by year
    fc : ForecastResult
        Forecast to draw
    out_path : Path
        Output PNG path
    ylabel : str, default="Imports"
        Y-axis label
    title : str, optional
        Plot title (auto-generated if None)
    """
    ensure_dir(out_path.parent)
    fig, ax = plt.subplots(figsize=(9, 4.5))

    ax.plot(history.index, history.values, color="black", linewidth=1.5, label="observed")

    years = np.asarray(fc.years)
    # Join the forecast line to the last observation
    x_line = np.r_[history.index[-1], years]
    y_line = np.r_[history.values[-1], fc.mean_original]
    ax.plot(x_line, y_line, color="tab:red", linestyle="--", marker="o", markersize=3, label="forecast")

    lower = np.where(np.isfinite(fc.lower_original), fc.lower_original, np.nan)
    upper = np.where(np.isfinite(fc.upper_original), fc.upper_original, np.nan)
    ax.fill_between(years, lower, upper, color="tab:red", alpha=0.2,
                    label=f"{fc.confidence_level:.0f}% interval")

    ax.set_xlabel("Year")
    ax.set_ylabel(ylabel)
    ax.set_title(title or f"{fc.horizon}-year forecast")
    ax.legend()
    ax.grid(True, alpha=0.3)
    plt.tight_layout()
    fig.savefig(out_path, dpi=300)
    plt.close(fig)
