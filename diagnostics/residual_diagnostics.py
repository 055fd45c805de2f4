"""Residual diagnostics for the selected ARIMA model.

This module validates model adequacy on a fixed residual vector. Every test is
read-only; a test that cannot produce a p-value raises NumericalError and is
reported as unavailable without stopping the rest of the battery.

Features:
- Ljung-Box test for serial correlation (single lag and a 1..20 lag sweep)
- Shapiro-Wilk test for normality
- ARCH test (Ljung-Box on squared residuals) with ARCH-LM as supporting statistic
- Aggregated DiagnosticReport with pass flags against a fixed threshold
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Union

import numpy as np
import pandas as pd
from scipy import stats
from statsmodels.stats.diagnostic import acorr_ljungbox

from imports_forecaster_src.exceptions import NumericalError

from .heteroskedasticity import HeteroskedasticityTester, clean_residuals

logger = logging.getLogger(__name__)


class DiagnosticTest(Enum):
    """Types of residual diagnostic tests."""
    LJUNG_BOX = "ljung_box"
    SHAPIRO_WILK = "shapiro_wilk"
    ARCH = "arch"


@dataclass
class DiagnosticResult:
    """Results from a single diagnostic test."""

    test_name: str
    test_type: DiagnosticTest
    test_statistic: float
    p_value: float
    significance_level: float = 0.05
    degrees_of_freedom: Optional[int] = None

    # Additional test-specific information
    test_description: Optional[str] = None
    additional_stats: Dict[str, float] = field(default_factory=dict)

    @property
    def is_significant(self) -> bool:
        """Check if test rejects null hypothesis."""
        return self.p_value < self.significance_level

    @property
    def passed(self) -> bool:
        """The model passes when the null is comfortably retained (p > alpha)."""
        return self.p_value > self.significance_level

    @property
    def interpretation(self) -> str:
        """Get interpretation of test result."""
        if self.test_type == DiagnosticTest.LJUNG_BOX:
            if self.passed:
                return "No significant serial correlation in residuals"
            return "Serial correlation detected in residuals"
        elif self.test_type == DiagnosticTest.SHAPIRO_WILK:
            if self.passed:
                return "Residuals appear normally distributed"
            return "Residuals not normally distributed; prediction interval coverage may be off"
        else:
            if self.passed:
                return "No ARCH effects detected in residuals"
            return "ARCH effects (volatility clustering) detected in residuals"


@dataclass
class DiagnosticReport:
    """Outcome of the full residual test battery for one model."""

    ljung_box_p: float = float("nan")
    shapiro_p: float = float("nan")
    arch_p: float = float("nan")
    pass_flags: Dict[str, bool] = field(default_factory=dict)
    test_results: Dict[str, DiagnosticResult] = field(default_factory=dict)
    ljung_box_sweep: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=["lb_stat", "lb_pvalue"]))
    unavailable: Dict[str, str] = field(default_factory=dict)
    significance_level: float = 0.05

    @property
    def all_passed(self) -> bool:
        """True when every available test passed and none was unavailable."""
        return bool(self.pass_flags) and all(self.pass_flags.values()) and not self.unavailable

    def summary_frame(self) -> pd.DataFrame:
        """One row per test with statistic, p-value and verdict."""
        rows = []
        for key, res in self.test_results.items():
            rows.append({
                "test": res.test_name,
                "statistic": res.test_statistic,
                "p_value": res.p_value,
                "verdict": "PASS" if res.passed else "FAIL",
            })
        for key, reason in self.unavailable.items():
            rows.append({"test": key, "statistic": np.nan, "p_value": np.nan, "verdict": f"UNAVAILABLE ({reason})"})
        return pd.DataFrame(rows, columns=["test", "statistic", "p_value", "verdict"])


class ResidualDiagnostics:
    """Residual diagnostic testing against a fixed significance level."""

    def __init__(self,
                 significance_level: float = 0.05,
                 ljung_box_lags: int = 10,
                 sweep_max_lag: int = 20,
                 arch_lags: int = 5):
        """Initialize residual diagnostics.

        Parameters
        ----------
        significance_level : float, default 0.05
            Significance level for all tests
        ljung_box_lags : int, default 10
            Lag for the headline Ljung-Box test
        sweep_max_lag : int, default 20
            Largest lag in the Ljung-Box p-value sweep
        arch_lags : int, default 5
            Lag for the ARCH test on squared residuals
        """
        self.significance_level = significance_level
        self.ljung_box_lags = ljung_box_lags
        self.sweep_max_lag = sweep_max_lag
        self.arch_lags = arch_lags
        self._het_tester = HeteroskedasticityTester(significance_level)

    def ljung_box_test(self, residuals: pd.Series, lags: Optional[int] = None) -> DiagnosticResult:
        """Ljung-Box test for serial correlation in residuals.

        Parameters
        ----------
        residuals : pd.Series
            Model residuals
        lags : int, optional
            Number of lags to test (default from constructor)

        Returns
        -------
        DiagnosticResult
            Ljung-Box test results
        """
        if lags is None:
            lags = self.ljung_box_lags
        name = "Ljung-Box Test"
        resid = clean_residuals(residuals, name, min_obs=lags + 1)

        logger.debug("Running Ljung-Box test with %d lags", lags)
        lb_result = acorr_ljungbox(resid, lags=[lags], return_df=True)
        test_stat = float(lb_result["lb_stat"].iloc[0])
        p_value = float(lb_result["lb_pvalue"].iloc[0])
        if not np.isfinite(p_value):
            raise NumericalError(f"{name}: p-value is not finite", name)

        return DiagnosticResult(
            test_name=name,
            test_type=DiagnosticTest.LJUNG_BOX,
            test_statistic=test_stat,
            p_value=p_value,
            degrees_of_freedom=lags,
            significance_level=self.significance_level,
            test_description=f"Test for serial correlation in residuals (H0: No serial correlation, lags={lags})"
        )

    def ljung_box_sweep(self, residuals: pd.Series, max_lag: Optional[int] = None) -> pd.DataFrame:
        """Ljung-Box statistics and p-values for every lag 1..max_lag.

        The sweep is truncated at ``n - 1`` lags for short residual vectors.

        Returns
        -------
        pd.DataFrame
            Indexed by lag with columns ['lb_stat', 'lb_pvalue']
        """
        if max_lag is None:
            max_lag = self.sweep_max_lag
        name = "Ljung-Box sweep"
        resid = clean_residuals(residuals, name, min_obs=2)
        top = int(min(max_lag, len(resid) - 1))

        df_lb = acorr_ljungbox(resid, lags=np.arange(1, top + 1), return_df=True)
        df_lb.index.name = "lag"
        return df_lb[["lb_stat", "lb_pvalue"]].astype(float)

    def shapiro_wilk_test(self, residuals: pd.Series) -> DiagnosticResult:
        """Shapiro-Wilk test for normality.

        A failure does not invalidate point forecasts; it only weakens the
        Gaussian assumption behind the prediction intervals.

        Parameters
        ----------
        residuals : pd.Series
            Model residuals

        Returns
        -------
        DiagnosticResult
            Shapiro-Wilk test results
        """
        name = "Shapiro-Wilk Test"
        resid = clean_residuals(residuals, name, min_obs=3)

        logger.debug("Running Shapiro-Wilk normality test")
        if len(resid) > 5000:
            logger.warning("Shapiro-Wilk test may be unreliable for large samples (n=%d)", len(resid))

        sw_stat, sw_pval = stats.shapiro(resid)
        if not np.isfinite(sw_pval):
            raise NumericalError(f"{name}: p-value is not finite", name)

        return DiagnosticResult(
            test_name=name,
            test_type=DiagnosticTest.SHAPIRO_WILK,
            test_statistic=float(sw_stat),
            p_value=float(sw_pval),
            significance_level=self.significance_level,
            test_description="Test for normality of residuals (H0: Residuals are normally distributed)"
        )

    def arch_test(self, residuals: pd.Series, lags: Optional[int] = None) -> DiagnosticResult:
        """ARCH test: Ljung-Box on squared residuals, with Engle's LM statistic attached.

        Parameters
        ----------
        residuals : pd.Series
            Model residuals
        lags : int, optional
            Number of lags to test (default from constructor)

        Returns
        -------
        DiagnosticResult
            ARCH test results
        """
        if lags is None:
            lags = self.arch_lags

        arch_result = self._het_tester.test_arch_ljung_box(residuals, lags)

        additional: Dict[str, float] = {}
        try:
            lm = self._het_tester.test_arch_lm(residuals, lags)
            additional = {"lm_stat": lm.test_statistic, "lm_pvalue": lm.p_value}
        except NumericalError as e:
            logger.debug("ARCH-LM statistic unavailable: %s", e)

        return DiagnosticResult(
            test_name="ARCH Test",
            test_type=DiagnosticTest.ARCH,
            test_statistic=arch_result.test_statistic,
            p_value=arch_result.p_value,
            degrees_of_freedom=arch_result.degrees_of_freedom,
            significance_level=self.significance_level,
            test_description=arch_result.test_description,
            additional_stats=additional,
        )

    def run_diagnostics(self, residuals: Union[pd.Series, np.ndarray]) -> DiagnosticReport:
        """Run the full battery and aggregate results.

        Each test runs independently; a NumericalError marks only that test
        unavailable.
        """
        report = DiagnosticReport(significance_level=self.significance_level)

        test_functions = [
            (DiagnosticTest.LJUNG_BOX.value, self.ljung_box_test),
            (DiagnosticTest.SHAPIRO_WILK.value, self.shapiro_wilk_test),
            (DiagnosticTest.ARCH.value, self.arch_test),
        ]
        for test_name, test_func in test_functions:
            try:
                result = test_func(residuals)
            except NumericalError as e:
                logger.warning("%s unavailable: %s", test_name, e)
                report.unavailable[test_name] = str(e)
                continue
            report.test_results[test_name] = result
            report.pass_flags[test_name] = result.passed
            logger.info("%s: statistic=%.4f, p-value=%.4f -> %s",
                        result.test_name, result.test_statistic, result.p_value,
                        "PASS" if result.passed else "FAIL")

        if DiagnosticTest.LJUNG_BOX.value in report.test_results:
            report.ljung_box_p = report.test_results[DiagnosticTest.LJUNG_BOX.value].p_value
        if DiagnosticTest.SHAPIRO_WILK.value in report.test_results:
            report.shapiro_p = report.test_results[DiagnosticTest.SHAPIRO_WILK.value].p_value
        if DiagnosticTest.ARCH.value in report.test_results:
            report.arch_p = report.test_results[DiagnosticTest.ARCH.value].p_value

        try:
            report.ljung_box_sweep = self.ljung_box_sweep(residuals)
        except NumericalError as e:
            logger.warning("Ljung-Box sweep unavailable: %s", e)
            report.unavailable["ljung_box_sweep"] = str(e)

        return report


def diagnose(residuals: Union[pd.Series, np.ndarray],
             significance_level: float = 0.05,
             ljung_box_lags: int = 10,
             sweep_max_lag: int = 20,
             arch_lags: int = 5) -> DiagnosticReport:
    """Convenience function running the residual test battery.

    Parameters
    ----------
    residuals : Union[pd.Series, np.ndarray]
        Model residuals
    significance_level : float
        Significance level for pass/fail verdicts
    ljung_box_lags, sweep_max_lag, arch_lags : int
        Lag settings for the individual tests

    Returns
    -------
    DiagnosticReport
        Aggregated results
    """
    diagnostics = ResidualDiagnostics(
        significance_level=significance_level,
        ljung_box_lags=ljung_box_lags,
        sweep_max_lag=sweep_max_lag,
        arch_lags=arch_lags,
    )
    return diagnostics.run_diagnostics(residuals)
