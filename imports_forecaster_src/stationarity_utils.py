# imports_forecaster_src/stationarity_utils.py

import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Dict, Tuple, Union
import logging

from statsmodels.tsa.stattools import adfuller

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdfResult:
    """Augmented Dickey-Fuller test outcome."""

    statistic: float
    p_value: float
    used_lag: int
    n_obs: int
    alpha: float = 0.05
    critical_values: Dict[str, float] = field(default_factory=dict)

    @property
    def is_stationary(self) -> bool:
        """Reject the unit-root null when p < alpha."""
        return bool(np.isfinite(self.p_value) and self.p_value < self.alpha)

    @property
    def verdict(self) -> str:
        return "stationary" if self.is_stationary else "non-stationary"


def adf_test(series: Union[pd.Series, np.ndarray],
             alpha: float = 0.05,
             autolag: str = "AIC") -> AdfResult:
    """
    Run the Augmented Dickey-Fuller (ADF) test for a unit root.

    Parameters
    ----------
    series : Union[pd.Series, np.ndarray]
        Input series. NaNs are dropped prior to testing.
    alpha : float, default=0.05
        Significance level for the stationarity verdict.
    autolag : str, default="AIC"
        Lag-order selection criterion passed to ``adfuller``.

    Returns
    -------
    AdfResult
        Test statistic, p-value, selected lag and verdict.

    Notes
    -----
    - ADF null hypothesis: the series has a unit root (non-stationary)
    - The test has no side effects; the caller decides whether to difference again
    """
    s = pd.Series(series).dropna()
    # icbest is only appended when autolag is set
    stat, pval, used_lag, nobs, crit = adfuller(s, autolag=autolag)[:5]
    return AdfResult(
        statistic=float(stat),
        p_value=float(pval),
        used_lag=int(used_lag),
        n_obs=int(nobs),
        alpha=alpha,
        critical_values={k: float(v) for k, v in crit.items()},
    )


def check_stationarity(level: pd.Series,
                       differenced: pd.Series,
                       alpha: float = 0.05,
                       autolag: str = "AIC") -> Tuple[AdfResult, AdfResult]:
    """
    Run ADF on the (transformed) level series and on its first difference.

    Returns
    -------
    Tuple[AdfResult, AdfResult]
        (level_result, differenced_result)
    """
    level_res = adf_test(level, alpha=alpha, autolag=autolag)
    logger.info("ADF on level: statistic=%.3f, p-value=%.3f (%s)",
                level_res.statistic, level_res.p_value, level_res.verdict)

    diff_res = adf_test(differenced, alpha=alpha, autolag=autolag)
    logger.info("ADF on first difference: statistic=%.3f, p-value=%.3f (%s)",
                diff_res.statistic, diff_res.p_value, diff_res.verdict)

    if not diff_res.is_stationary:
        logger.warning("Differenced series is not stationary at alpha=%.2f; "
                       "ARIMA(p,1,q) residuals may retain a unit root.", alpha)
    return level_res, diff_res
