"""Heteroskedasticity testing for ARIMA residuals.

This module checks fitted-model residuals for volatility clustering
(autoregressive conditional heteroskedasticity) on annual import series.

Features:
- McLeod-Li test: Ljung-Box applied to squared residuals
- Engle ARCH-LM test as supplementary evidence
- Degenerate-input detection surfaced as NumericalError
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import pandas as pd
from statsmodels.stats.diagnostic import acorr_ljungbox, het_arch

from imports_forecaster_src.exceptions import NumericalError

logger = logging.getLogger(__name__)

# Residual variance below this is treated as constant
VARIANCE_FLOOR = 1e-12


@dataclass
class HeteroskedasticityResult:
    """Results from heteroskedasticity testing."""

    test_name: str
    test_statistic: float
    p_value: float
    significance_level: float = 0.05
    degrees_of_freedom: Optional[int] = None
    test_description: Optional[str] = None

    @property
    def is_heteroskedastic(self) -> bool:
        """Check if heteroskedasticity is detected."""
        return self.p_value < self.significance_level

    @property
    def interpretation(self) -> str:
        """Get interpretation of test result."""
        if self.is_heteroskedastic:
            return f"Heteroskedasticity detected (p={self.p_value:.4f} < {self.significance_level})"
        else:
            return f"No heteroskedasticity detected (p={self.p_value:.4f} >= {self.significance_level})"


def clean_residuals(residuals: Union[pd.Series, np.ndarray], test_name: str, min_obs: int = 3) -> pd.Series:
    """Drop NaNs and reject residual vectors no test can work with.

    Raises
    ------
    NumericalError
        If fewer than ``min_obs`` values remain or the residuals are constant
    """
    resid = pd.Series(np.asarray(residuals, dtype=float)).dropna()
    if len(resid) < min_obs:
        raise NumericalError(f"{test_name}: need at least {min_obs} residuals, got {len(resid)}", test_name)
    if float(np.std(resid)) <= VARIANCE_FLOOR:
        raise NumericalError(f"{test_name}: residuals have zero variance", test_name)
    return resid


class HeteroskedasticityTester:
    """ARCH-effect testing for time series model residuals."""

    def __init__(self, significance_level: float = 0.05):
        """Initialize the heteroskedasticity tester.

        Parameters
        ----------
        significance_level : float, default 0.05
            Significance level for hypothesis tests
        """
        self.significance_level = significance_level

    def test_arch_ljung_box(self, residuals: pd.Series, lags: int = 5) -> HeteroskedasticityResult:
        """Ljung-Box test on squared residuals (McLeod-Li).

        Parameters
        ----------
        residuals : pd.Series
            Model residuals
        lags : int, default 5
            Lag at which the portmanteau statistic is evaluated

        Returns
        -------
        HeteroskedasticityResult
            Test results; H0 is no residual heteroskedasticity
        """
        name = "ARCH (Ljung-Box on squared residuals)"
        resid = clean_residuals(residuals, name, min_obs=lags + 2)
        squared = resid ** 2
        if float(np.std(squared)) <= VARIANCE_FLOOR:
            raise NumericalError(f"{name}: squared residuals have zero variance", name)

        logger.debug("Running McLeod-Li test with %d lags", lags)
        lb = acorr_ljungbox(squared, lags=[lags], return_df=True)
        stat = float(lb["lb_stat"].iloc[0])
        pval = float(lb["lb_pvalue"].iloc[0])
        if not np.isfinite(pval):
            raise NumericalError(f"{name}: p-value is not finite", name)

        return HeteroskedasticityResult(
            test_name=name,
            test_statistic=stat,
            p_value=pval,
            significance_level=self.significance_level,
            degrees_of_freedom=lags,
            test_description=f"Test for ARCH effects (H0: No autocorrelation in squared residuals, lags={lags})",
        )

    def test_arch_lm(self, residuals: pd.Series, lags: int = 5) -> HeteroskedasticityResult:
        """Test for ARCH effects using Engle's Lagrange Multiplier test.

        Parameters
        ----------
        residuals : pd.Series
            Model residuals
        lags : int, default 5
            Number of lags to include in the auxiliary regression

        Returns
        -------
        HeteroskedasticityResult
            ARCH-LM test results
        """
        name = "ARCH-LM Test"
        resid = clean_residuals(residuals, name, min_obs=2 * lags + 2)

        logger.debug("Running ARCH-LM test with %d lags", lags)
        lm_stat, lm_pval, _, _ = het_arch(resid, nlags=lags)
        if not np.isfinite(lm_pval):
            raise NumericalError(f"{name}: p-value is not finite", name)

        return HeteroskedasticityResult(
            test_name=name,
            test_statistic=float(lm_stat),
            p_value=float(lm_pval),
            significance_level=self.significance_level,
            degrees_of_freedom=lags,
            test_description=f"Engle LM test for ARCH effects (H0: No ARCH effects, lags={lags})",
        )
