# imports_forecaster_src/transform_utils.py

import numpy as np
import pandas as pd
from typing import Tuple, Union
import logging

from scipy import stats
from scipy.special import boxcox as _sp_boxcox
from scipy.special import inv_boxcox as _sp_inv_boxcox

from .exceptions import DomainError
from .models import TransformParameters

logger = logging.getLogger(__name__)

ArrayLike = Union[pd.Series, np.ndarray, list, float]


def _require_positive(values: np.ndarray, what: str) -> None:
    if not np.all(np.isfinite(values)):
        raise DomainError(f"{what} requires finite values")
    if np.any(values <= 0):
        n_bad = int(np.sum(values <= 0))
        raise DomainError(f"{what} requires all values > 0 ({n_bad} non-positive value(s) found)")


def estimate_lambda(series: ArrayLike) -> float:
    """
    Estimate the Box-Cox exponent that maximizes the profile log-likelihood.

    Parameters
    ----------
    series : ArrayLike
        Raw (untransformed) observations. Must be strictly positive.

    Returns
    -------
    float
        Maximum-likelihood lambda.

    Raises
    ------
    DomainError
        If any value is non-positive or non-finite.
    """
    arr = np.asarray(pd.Series(series).dropna(), dtype=float)
    _require_positive(arr, "Box-Cox lambda estimation")
    if arr.size < 2 or np.ptp(arr) == 0:
        raise DomainError("Box-Cox lambda estimation requires at least two distinct values")
    lmbda = float(stats.boxcox_normmax(arr, method="mle"))
    logger.debug("Estimated Box-Cox lambda=%.6f from %d observations", lmbda, arr.size)
    return lmbda


def boxcox_transform(series: ArrayLike, lmbda: float) -> ArrayLike:
    """
    Apply the Box-Cox transform elementwise.

    ``(x**lmbda - 1) / lmbda`` for lmbda != 0, ``log(x)`` otherwise. A pandas
    Series keeps its index and name.
    """
    arr = np.asarray(series, dtype=float)
    _require_positive(arr, "Box-Cox transform")
    out = _sp_boxcox(arr, lmbda)
    if isinstance(series, pd.Series):
        return pd.Series(out, index=series.index, name=series.name)
    return out


def inverse_boxcox(x: ArrayLike, lmbda: float, clamp: bool = False) -> ArrayLike:
    """
    Invert the Box-Cox transform elementwise.

    ``(lmbda * x + 1) ** (1 / lmbda)`` for lmbda != 0, ``exp(x)`` otherwise.

    Parameters
    ----------
    x : ArrayLike
        Values on the transformed scale.
    lmbda : float
        Box-Cox exponent used for the forward transform.
    clamp : bool, default=False
        When the base ``lmbda * x + 1`` is non-positive the inverse is undefined.
        With ``clamp=True`` such points are replaced by their limiting value
        (0.0 for lmbda > 0, +inf for lmbda < 0) instead of raising.

    Raises
    ------
    DomainError
        If the inverse is undefined for some point and ``clamp`` is False.
    """
    arr = np.asarray(x, dtype=float)
    scalar = arr.ndim == 0
    arr = np.atleast_1d(arr)

    if lmbda == 0.0:
        out = np.exp(arr)
    else:
        base = lmbda * arr + 1.0
        invalid = ~(base > 0)
        if np.any(invalid):
            if not clamp:
                raise DomainError(
                    f"Inverse Box-Cox undefined for {int(invalid.sum())} value(s): "
                    f"lambda*x + 1 <= 0 with lambda={lmbda:.6f}"
                )
            limit = 0.0 if lmbda > 0 else np.inf
            logger.warning("Clamping %d inverse Box-Cox value(s) to %s", int(invalid.sum()), limit)
            out = np.full_like(arr, limit)
            out[~invalid] = _sp_inv_boxcox(arr[~invalid], lmbda)
        else:
            out = _sp_inv_boxcox(arr, lmbda)

    if isinstance(x, pd.Series):
        return pd.Series(out, index=x.index, name=x.name)
    return float(out[0]) if scalar else out


def difference(series: pd.Series, order: int = 1) -> pd.Series:
    """
    Difference a series ``order`` times; the result is ``order`` observations shorter.

    Parameters
    ----------
    series : pd.Series
        Input series.
    order : int, default=1
        Number of successive first differences to take.
    """
    if order < 0:
        raise ValueError("Differencing order must be non-negative")
    out = pd.Series(series, dtype=float)
    for _ in range(order):
        out = out.diff().iloc[1:]
    return out


def fit_transform(series: pd.Series, enabled: bool = True) -> Tuple[pd.Series, TransformParameters]:
    """
    Estimate Box-Cox parameters and apply the forward transform.

    Forward and inverse transforms share the same TransformParameters, so a
    disabled transform is the identity in both directions.

    Returns
    -------
    Tuple[pd.Series, TransformParameters]
        (transformed_series, parameters)
    """
    if not enabled:
        logger.info("Box-Cox transform disabled; modelling raw values")
        return pd.Series(series, dtype=float), TransformParameters(lmbda=1.0, enabled=False)

    lmbda = estimate_lambda(series)
    params = TransformParameters(lmbda=lmbda, enabled=True)
    transformed = boxcox_transform(pd.Series(series, dtype=float), lmbda)
    logger.info("Applied %s", params.describe())
    return transformed, params


def invert_transform(values: ArrayLike, params: TransformParameters, clamp: bool = False) -> ArrayLike:
    """Map values from the modelling scale back to the original measurement scale."""
    if not params.enabled:
        if isinstance(values, pd.Series):
            return values.astype(float)
        return np.asarray(values, dtype=float)
    return inverse_boxcox(values, params.lmbda, clamp=clamp)


def get_transform_description(params: TransformParameters) -> str:
    """Human-readable description of the transform in effect."""
    return params.describe()
