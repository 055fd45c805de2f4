# imports_forecaster_src/report_utils.py

"""
Plain-text summaries of each workflow stage.

All functions are pure: they take stage outputs and return strings, leaving
printing, logging and file output to the caller.
"""

import numpy as np
import pandas as pd
from typing import List

from diagnostics import DiagnosticReport

from .models import FitResult, ForecastResult, TransformParameters
from .stationarity_utils import AdfResult


def _fmt_p(p: float) -> str:
    return "n/a" if not np.isfinite(p) else f"{p:.4f}"


def format_transform_summary(params: TransformParameters, n_obs: int) -> str:
    return f"Transform: {params.describe()} on {n_obs} observations"


def format_adf_summary(label: str, res: AdfResult) -> str:
    """One-paragraph ADF summary with critical values and verdict."""
    crit = ", ".join(f"{k}: {v:.3f}" for k, v in sorted(res.critical_values.items()))
    return (
        f"ADF test ({label})\n"
        f"  statistic = {res.statistic:.4f}\n"
        f"  p-value   = {_fmt_p(res.p_value)}\n"
        f"  lags used = {res.used_lag}, n = {res.n_obs}\n"
        f"  critical values: {crit}\n"
        f"  verdict: {res.verdict.upper()} at alpha={res.alpha}"
    )


def format_grid_table(grid: pd.DataFrame, max_rows: int = 25) -> str:
    """Fixed-width grid-search table (Model, AIC, BIC, Ljung-Box p)."""
    cols = [c for c in ["Model", "AIC", "BIC", "Ljung-Box p", "Converged"] if c in grid.columns]
    return grid.loc[:, cols].head(max_rows).to_string(index=False, float_format=lambda v: f"{v:.3f}")


def format_selection_summary(best: FitResult) -> str:
    coefs = ", ".join(f"{k}={v:.4f}" for k, v in best.coefficients.items())
    return (
        f"Selected {best.candidate.label}: AIC={best.aic:.3f}, BIC={best.bic:.3f}, "
        f"Ljung-Box p(10)={_fmt_p(best.ljung_box_p)}\n"
        f"  coefficients: {coefs}"
    )


def format_diagnostic_summary(report: DiagnosticReport) -> str:
    """
    Statistic, p-value and PASS/FAIL verdict for every residual test.

    Unavailable tests are listed with the reason they could not be computed.
    """
    alpha = report.significance_level
    lines: List[str] = [f"Residual diagnostics (pass if p > {alpha})"]
    for key, res in report.test_results.items():
        verdict = "PASS" if res.passed else "FAIL"
        lines.append(f"  {res.test_name:<18} statistic={res.test_statistic:10.4f}  "
                     f"p-value={_fmt_p(res.p_value):>7}  {verdict}")
        lines.append(f"    {res.interpretation}")
        if "lm_pvalue" in res.additional_stats:
            lines.append(f"    ARCH-LM statistic={res.additional_stats['lm_stat']:.4f}, "
                         f"p-value={_fmt_p(res.additional_stats['lm_pvalue'])}")
    for key, reason in report.unavailable.items():
        lines.append(f"  {key:<18} UNAVAILABLE: {reason}")

    if not report.ljung_box_sweep.empty:
        failing = report.ljung_box_sweep.index[report.ljung_box_sweep["lb_pvalue"] <= alpha].tolist()
        if failing:
            lines.append(f"  Ljung-Box sweep: p <= {alpha} at lag(s) {failing}")
        else:
            lines.append(f"  Ljung-Box sweep: p > {alpha} at every lag 1..{int(report.ljung_box_sweep.index.max())}")
    return "\n".join(lines)


def format_forecast_summary(fc: ForecastResult) -> str:
    """Forecast table on the original measurement scale."""
    lvl = int(round(fc.confidence_level))
    df = pd.DataFrame(
        {"mean": fc.mean_original, f"lower_{lvl}": fc.lower_original, f"upper_{lvl}": fc.upper_original},
        index=fc.years,
    )
    return f"{fc.horizon}-step forecast ({lvl}% intervals)\n" + df.to_string(float_format=lambda v: f"{v:.3f}")
