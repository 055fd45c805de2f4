# imports_forecaster_src/forecasting_utils.py

import numpy as np
import pandas as pd
import warnings
from itertools import product
from typing import Iterable, List, Optional, Union
from tqdm.auto import tqdm
import logging

from scipy import stats
from statsmodels.stats.diagnostic import acorr_ljungbox
from statsmodels.tsa.arima_process import arma2ma
from statsmodels.tsa.statespace.sarimax import SARIMAX

from .exceptions import ConvergenceError, EmptySetError
from .models import FitResult, ForecastResult, ModelCandidate, TransformParameters
from .transform_utils import invert_transform

logger = logging.getLogger(__name__)


def enumerate_candidates(p_range: Iterable[int], q_range: Iterable[int], d: int = 1) -> List[ModelCandidate]:
    """
    Build the ARIMA(p, d, q) grid in deterministic (p, q) order.

    Parameters
    ----------
    p_range, q_range : Iterable[int]
        AR and MA orders to search (e.g. ``range(5)``)
    d : int, default=1
        Fixed differencing order

    Returns
    -------
    List[ModelCandidate]
        ``len(p_range) * len(q_range)`` candidates
    """
    return [ModelCandidate(p=int(p), d=int(d), q=int(q))
            for p, q in product(sorted(set(p_range)), sorted(set(q_range)))]


def _model_endog(series: Union[pd.Series, np.ndarray]) -> np.ndarray:
    # statsmodels gets a bare array; year labels are re-attached by the caller
    return np.asarray(pd.Series(series).dropna(), dtype=float)


def ljung_box_pvalue(residuals: Union[pd.Series, np.ndarray], lags: int = 10) -> float:
    """
    Ljung-Box p-value at a single lag, capped at ``n - 1``; NaN if not computable.
    """
    resid = np.asarray(pd.Series(residuals).dropna(), dtype=float)
    lag = int(min(lags, resid.size - 1))
    if lag < 1 or np.std(resid) <= 1e-12:
        return float("nan")
    df_lb = acorr_ljungbox(resid, lags=[lag], return_df=True)
    return float(df_lb["lb_pvalue"].iloc[0])


def fit_arima_candidate(series: pd.Series,
                        candidate: ModelCandidate,
                        maxiter: int = 200,
                        method: str = "lbfgs",
                        ljung_box_lags: int = 10) -> FitResult:
    """
    Fit a single ARIMA(p, d, q) candidate by maximum likelihood.

    The model is a non-seasonal SARIMAX with ``simple_differencing=False`` so
    differencing happens inside the state-space representation and the
    likelihood covers every observation of the level series.

    Parameters
    ----------
    series : pd.Series
        Transformed (not differenced) series indexed by year
    candidate : ModelCandidate
        Order triple to fit
    maxiter : int, default=200
        Optimizer iteration bound; a fit that has not converged by then fails
    method : str, default="lbfgs"
        statsmodels optimizer name
    ljung_box_lags : int, default=10
        Lag at which the residual whiteness p-value is recorded

    Returns
    -------
    FitResult
        Scores, coefficients, residuals and the fitted results object

    Raises
    ------
    ConvergenceError
        If the optimizer reports non-convergence or the likelihood is not finite

    Notes
    -----
    The first ``d`` residuals come from the diffuse initialisation of the
    integrated state and are dropped before any residual statistic is computed.
    """
    endog = _model_endog(series)
    if endog.size <= candidate.n_params + candidate.d:
        raise ConvergenceError(
            f"{candidate.label}: {endog.size} observations are too few to estimate {candidate.n_params} parameters",
            order=candidate.order,
        )

    model = SARIMAX(
        endog,
        order=candidate.order,
        seasonal_order=(0, 0, 0, 0),
        simple_differencing=False,
    )
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        res = model.fit(disp=False, maxiter=maxiter, method=method)

    retvals = getattr(res, "mle_retvals", None) or {}
    if not retvals.get("converged", True):
        raise ConvergenceError(
            f"{candidate.label}: optimizer did not converge within {maxiter} iterations",
            order=candidate.order,
        )

    aic = float(getattr(res, "aic", np.nan))
    bic = float(getattr(res, "bic", np.nan))
    if not (np.isfinite(aic) and np.isfinite(bic)):
        raise ConvergenceError(f"{candidate.label}: non-finite information criteria", order=candidate.order)

    resid_values = np.asarray(res.resid, dtype=float)[candidate.d:]
    if isinstance(series, pd.Series):
        resid_index = series.dropna().index[candidate.d:]
    else:
        resid_index = pd.RangeIndex(candidate.d, candidate.d + resid_values.size)
    residuals = pd.Series(resid_values, index=resid_index, name="residual")

    coefficients = {
        name: float(value)
        for name, value in zip(res.model.param_names, np.asarray(res.params, dtype=float))
    }

    return FitResult(
        candidate=candidate,
        aic=aic,
        bic=bic,
        coefficients=coefficients,
        residuals=residuals,
        ljung_box_p=ljung_box_pvalue(residuals, ljung_box_lags),
        converged=True,
        result=res,
    )


def search_grid(series: pd.Series,
                p_range: Iterable[int] = range(5),
                q_range: Iterable[int] = range(5),
                d: int = 1,
                maxiter: int = 200,
                method: str = "lbfgs",
                ljung_box_lags: int = 10,
                progress: bool = True) -> List[FitResult]:
    """
    Grid-search ARIMA(p, d, q) over ``p_range x q_range``.

    Every candidate yields exactly one FitResult. Candidates that fail to fit
    are recorded with ``aic = bic = +inf`` and ``converged = False`` so one bad
    order never aborts the search.

    Parameters
    ----------
    series : pd.Series
        Transformed series (levels; differencing is inside the model)
    p_range, q_range : Iterable[int], default=range(5)
        Orders to search
    d : int, default=1
        Fixed differencing order
    maxiter, method :
        Optimizer settings forwarded to ``fit_arima_candidate``
    ljung_box_lags : int, default=10
        Lag for the per-candidate residual whiteness p-value
    progress : bool, default=True
        Show a tqdm progress bar

    Returns
    -------
    List[FitResult]
        Results in candidate enumeration order
    """
    candidates = enumerate_candidates(p_range, q_range, d)
    results: List[FitResult] = []

    for candidate in tqdm(candidates, desc="Grid search ARIMA", disable=not progress):
        try:
            fit = fit_arima_candidate(series, candidate, maxiter=maxiter, method=method,
                                      ljung_box_lags=ljung_box_lags)
        except ConvergenceError as e:
            logger.debug("Excluding %s: %s", candidate.label, e)
            fit = FitResult.failed(candidate, str(e))
        except Exception as e:
            logger.debug("Fit failed for %s: %s", candidate.label, e)
            fit = FitResult.failed(candidate, f"{type(e).__name__}: {e}")
        results.append(fit)

    n_ok = sum(1 for r in results if r.is_usable)
    logger.info("Grid search finished: %d/%d candidates converged", n_ok, len(results))
    return results


def results_to_frame(results: List[FitResult]) -> pd.DataFrame:
    """
    Tabulate grid-search results sorted by AIC (failed candidates last).

    Returns
    -------
    pd.DataFrame
        Columns ['Model', 'p', 'd', 'q', 'AIC', 'BIC', 'Ljung-Box p', 'Converged']
    """
    rows = [
        {
            "Model": r.candidate.label,
            "p": r.candidate.p,
            "d": r.candidate.d,
            "q": r.candidate.q,
            "AIC": r.aic,
            "BIC": r.bic,
            "Ljung-Box p": r.ljung_box_p,
            "Converged": r.is_usable,
        }
        for r in results
    ]
    df = pd.DataFrame(rows, columns=["Model", "p", "d", "q", "AIC", "BIC", "Ljung-Box p", "Converged"])
    return df.sort_values(by=["AIC", "BIC", "p", "q"], ascending=True, kind="mergesort").reset_index(drop=True)


def select_best(results: List[FitResult]) -> FitResult:
    """
    Pick the candidate with minimum AIC.

    Ties are broken by lower BIC, then lower p, then lower q, so the choice is
    reproducible regardless of the order in which results were collected.

    Raises
    ------
    EmptySetError
        If no candidate converged with a finite AIC
    """
    usable = [r for r in results if r.is_usable]
    if not usable:
        raise EmptySetError("No ARIMA candidate converged; nothing to select.")

    best = min(usable, key=lambda r: (r.aic, r.bic, r.candidate.p, r.candidate.q))

    bic_best = min(usable, key=lambda r: (r.bic, r.aic, r.candidate.p, r.candidate.q))
    if bic_best.candidate != best.candidate:
        logger.info("AIC selects %s (AIC=%.3f) but BIC prefers %s (BIC=%.3f)",
                    best.candidate.label, best.aic, bic_best.candidate.label, bic_best.bic)
    else:
        logger.info("AIC and BIC agree on %s", best.candidate.label)
    return best


def psi_weights(fit: FitResult, horizon: int) -> np.ndarray:
    """
    MA(infinity) coefficients psi_0..psi_{h-1} of the integrated ARIMA process.

    The AR polynomial is multiplied by ``(1 - L)**d`` before inversion so the
    weights accumulate the differencing.
    """
    p, d, q = fit.candidate.order
    coefs = fit.coefficients
    phi = [coefs.get(f"ar.L{i}", 0.0) for i in range(1, p + 1)]
    theta = [coefs.get(f"ma.L{i}", 0.0) for i in range(1, q + 1)]

    ar_poly = np.r_[1.0, -np.asarray(phi, dtype=float)]
    for _ in range(d):
        ar_poly = np.convolve(ar_poly, [1.0, -1.0])
    ma_poly = np.r_[1.0, np.asarray(theta, dtype=float)]

    return np.asarray(arma2ma(ar_poly, ma_poly, lags=horizon), dtype=float)


def forecast_variance(fit: FitResult, horizon: int) -> np.ndarray:
    """
    h-step forecast-error variances ``sigma2 * cumsum(psi_j ** 2)`` for h = 1..horizon.
    """
    if horizon < 1:
        raise ValueError("Forecast horizon must be at least 1")
    sigma2 = fit.coefficients.get("sigma2")
    if sigma2 is None or not np.isfinite(sigma2):
        raise ValueError(f"{fit.candidate.label}: fitted innovation variance unavailable")
    psi = psi_weights(fit, horizon)
    return float(sigma2) * np.cumsum(psi ** 2)


def forecast(fit: FitResult,
             horizon: int,
             params: TransformParameters,
             confidence_level: float = 95.0,
             clamp_bounds: bool = False,
             last_year: Optional[int] = None) -> ForecastResult:
    """
    Produce h-step-ahead forecasts with prediction intervals on both scales.

    Parameters
    ----------
    fit : FitResult
        Selected model; must carry its fitted results object
    horizon : int
        Number of annual steps to forecast
    params : TransformParameters
        Transform used to build the modelling series; applied in reverse
    confidence_level : float, default=95.0
        Two-sided interval coverage in percent
    clamp_bounds : bool, default=False
        Clamp interval bounds whose inverse transform is undefined instead of raising
    last_year : Optional[int]
        Final observed year; forecast years continue from it

    Returns
    -------
    ForecastResult

    Raises
    ------
    DomainError
        If the point forecast cannot be inverted, or a bound cannot and
        ``clamp_bounds`` is False

    Notes
    -----
    Intervals are symmetric on the transformed scale: ``mean +/- z * se`` with
    se from the psi-weight variance recursion. After inversion they are
    generally asymmetric.
    """
    if fit.result is None:
        raise ValueError(f"{fit.candidate.label}: no fitted model available for forecasting")
    if not 0.0 < confidence_level < 100.0:
        raise ValueError("confidence_level must lie strictly between 0 and 100")

    mean = np.asarray(fit.result.get_forecast(steps=horizon).predicted_mean, dtype=float)
    se = np.sqrt(forecast_variance(fit, horizon))
    z = float(stats.norm.ppf(0.5 + confidence_level / 200.0))
    lower = mean - z * se
    upper = mean + z * se

    if last_year is None:
        idx = fit.residuals.index if fit.residuals is not None else None
        last_year = int(idx[-1]) if idx is not None and len(idx) else 0
    years = pd.Index(np.arange(last_year + 1, last_year + horizon + 1), name="Year")

    mean_orig = invert_transform(mean, params, clamp=False)
    lower_orig = invert_transform(lower, params, clamp=clamp_bounds)
    upper_orig = invert_transform(upper, params, clamp=clamp_bounds)

    logger.info("Forecast %d steps with %s at %.0f%% confidence", horizon, fit.candidate.label, confidence_level)
    return ForecastResult(
        horizon=horizon,
        years=years,
        confidence_level=float(confidence_level),
        mean_transformed=mean,
        lower_transformed=lower,
        upper_transformed=upper,
        std_error=se,
        mean_original=np.asarray(mean_orig, dtype=float),
        lower_original=np.asarray(lower_orig, dtype=float),
        upper_original=np.asarray(upper_orig, dtype=float),
    )
