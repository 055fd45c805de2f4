import numpy as np
import pandas as pd
import pytest


def make_imports_series(n: int = 60, start_year: int = 1960, seed: int = 7) -> pd.Series:
    """Positive annual series growing about 4% a year with multiplicative noise."""
    rng = np.random.default_rng(seed)
    log_growth = 0.04 + 0.03 * rng.standard_normal(n)
    values = 50.0 * np.exp(np.cumsum(log_growth))
    return pd.Series(values, index=pd.Index(np.arange(start_year, start_year + n), name="Year"), name="Imports")


def make_integrated_ar2(n: int = 200, phi=(0.5, -0.3), seed: int = 11) -> pd.Series:
    """Random walk whose increments follow a stationary AR(2)."""
    rng = np.random.default_rng(seed)
    eps = rng.standard_normal(n + 50)
    x = np.zeros(n + 50)
    for t in range(2, n + 50):
        x[t] = phi[0] * x[t - 1] + phi[1] * x[t - 2] + eps[t]
    y = 100.0 + np.cumsum(x[50:])
    return pd.Series(y, index=pd.Index(np.arange(1800, 1800 + n), name="Year"), name="y")


@pytest.fixture
def imports_series() -> pd.Series:
    return make_imports_series()


@pytest.fixture
def short_imports_series() -> pd.Series:
    return make_imports_series(n=40, start_year=1980, seed=3)


@pytest.fixture
def imports_csv(tmp_path, short_imports_series):
    path = tmp_path / "imports.csv"
    df = pd.DataFrame({"Year": short_imports_series.index, "Imports": short_imports_series.values})
    df.to_csv(path, index=False)
    return path
