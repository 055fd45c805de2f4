# imports_forecaster_src/models.py

"""
Data containers passed between workflow stages.

The time series itself is a plain ``pd.Series`` of floats indexed by integer
year; everything derived from it is captured in the dataclasses below.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd


@dataclass(frozen=True)
class TransformParameters:
    """Box-Cox parameters estimated once from the raw series."""

    lmbda: float = 1.0
    enabled: bool = True

    @property
    def is_log(self) -> bool:
        return self.enabled and self.lmbda == 0.0

    def describe(self) -> str:
        if not self.enabled:
            return "Box-Cox disabled (identity transform)"
        if self.is_log:
            return "Box-Cox lambda=0 (log transform)"
        return f"Box-Cox lambda={self.lmbda:.4f}"


@dataclass(frozen=True, order=True)
class ModelCandidate:
    """ARIMA order triple; ordering is (p, d, q) for deterministic tie-breaks."""

    p: int
    d: int = 1
    q: int = 0

    @property
    def order(self) -> Tuple[int, int, int]:
        return (self.p, self.d, self.q)

    @property
    def label(self) -> str:
        return f"ARIMA({self.p},{self.d},{self.q})"

    @property
    def n_params(self) -> int:
        # AR + MA coefficients + innovation variance
        return self.p + self.q + 1


@dataclass
class FitResult:
    """Outcome of fitting one candidate against the transformed series."""

    candidate: ModelCandidate
    aic: float = math.inf
    bic: float = math.inf
    coefficients: Dict[str, float] = field(default_factory=dict)
    residuals: Optional[pd.Series] = None
    ljung_box_p: float = float("nan")
    converged: bool = False
    error: Optional[str] = None
    result: Any = field(default=None, repr=False, compare=False)

    @property
    def is_usable(self) -> bool:
        """True when the fit converged and produced a finite AIC."""
        return self.converged and np.isfinite(self.aic)

    @classmethod
    def failed(cls, candidate: ModelCandidate, error: str) -> "FitResult":
        return cls(candidate=candidate, converged=False, error=error)


@dataclass
class ForecastResult:
    """Point forecasts and prediction intervals on both scales."""

    horizon: int
    years: pd.Index
    confidence_level: float
    mean_transformed: np.ndarray
    lower_transformed: np.ndarray
    upper_transformed: np.ndarray
    std_error: np.ndarray
    mean_original: np.ndarray
    lower_original: np.ndarray
    upper_original: np.ndarray

    def to_frame(self) -> pd.DataFrame:
        """Tabular view indexed by forecast year."""
        lvl = int(round(self.confidence_level))
        return pd.DataFrame(
            {
                "mean_transformed": self.mean_transformed,
                f"lower_{lvl}_transformed": self.lower_transformed,
                f"upper_{lvl}_transformed": self.upper_transformed,
                "std_error": self.std_error,
                "mean": self.mean_original,
                f"lower_{lvl}": self.lower_original,
                f"upper_{lvl}": self.upper_original,
            },
            index=self.years,
        )
