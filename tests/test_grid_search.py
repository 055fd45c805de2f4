import numpy as np
import pandas as pd
import pytest

from conftest import make_integrated_ar2
from imports_forecaster_src.exceptions import ConvergenceError
from imports_forecaster_src.forecasting_utils import (
    enumerate_candidates, fit_arima_candidate, search_grid, results_to_frame, ljung_box_pvalue
)
from imports_forecaster_src.models import FitResult, ModelCandidate
from imports_forecaster_src.transform_utils import fit_transform


def test_enumerate_candidates_full_grid():
    cands = enumerate_candidates(range(5), range(5), d=1)
    assert len(cands) == 25
    assert cands[0] == ModelCandidate(0, 1, 0)
    assert cands[1] == ModelCandidate(0, 1, 1)
    assert cands[-1] == ModelCandidate(4, 1, 4)
    assert all(c.d == 1 for c in cands)
    assert len(set(cands)) == 25


def test_enumerate_candidates_deduplicates_and_sorts():
    cands = enumerate_candidates([2, 0, 2], [1, 0])
    assert [c.order for c in cands] == [(0, 1, 0), (0, 1, 1), (2, 1, 0), (2, 1, 1)]


def test_model_candidate_label_and_params():
    c = ModelCandidate(p=2, d=1, q=3)
    assert c.label == "ARIMA(2,1,3)"
    assert c.order == (2, 1, 3)
    assert c.n_params == 6


def test_fit_arima_candidate_outputs(imports_series):
    transformed, _ = fit_transform(imports_series)
    fit = fit_arima_candidate(transformed, ModelCandidate(1, 1, 0))
    assert fit.converged and fit.is_usable
    assert np.isfinite(fit.aic) and np.isfinite(fit.bic)
    assert set(fit.coefficients) == {"ar.L1", "sigma2"}
    assert fit.coefficients["sigma2"] > 0
    # First residual belongs to the diffuse initialisation and is dropped
    assert len(fit.residuals) == len(imports_series) - 1
    assert fit.residuals.index[0] == imports_series.index[1]
    assert fit.residuals.name == "residual"
    assert 0.0 <= fit.ljung_box_p <= 1.0
    assert fit.result is not None


def test_fit_arima_candidate_too_few_observations():
    s = pd.Series([1.0, 2.0, 3.0], index=[2000, 2001, 2002])
    with pytest.raises(ConvergenceError) as excinfo:
        fit_arima_candidate(s, ModelCandidate(4, 1, 4))
    assert excinfo.value.order == (4, 1, 4)


def test_search_grid_full_grid(imports_series):
    transformed, _ = fit_transform(imports_series)
    results = search_grid(transformed, range(5), range(5), d=1, progress=False)

    assert len(results) == 25
    assert [r.candidate for r in results] == enumerate_candidates(range(5), range(5))
    for r in results:
        if r.is_usable:
            assert np.isfinite(r.aic)
        else:
            assert r.aic == np.inf and r.bic == np.inf
            assert not r.converged
            assert r.error
    assert any(r.is_usable for r in results)


def test_search_grid_records_failures_without_aborting():
    s = pd.Series(np.linspace(1.0, 4.0, 4), index=np.arange(2000, 2004))
    results = search_grid(s, [0, 3], [0], progress=False)
    assert len(results) == 2
    by_order = {r.candidate.order: r for r in results}
    assert not by_order[(3, 1, 0)].is_usable
    assert by_order[(3, 1, 0)].aic == np.inf


def test_results_to_frame_sorted_with_failures_last():
    results = [
        FitResult(ModelCandidate(1, 1, 0), aic=12.0, bic=14.0, converged=True),
        FitResult.failed(ModelCandidate(2, 1, 2), "boom"),
        FitResult(ModelCandidate(0, 1, 1), aic=10.0, bic=11.0, converged=True),
    ]
    df = results_to_frame(results)
    assert list(df.columns) == ["Model", "p", "d", "q", "AIC", "BIC", "Ljung-Box p", "Converged"]
    assert df["Model"].tolist() == ["ARIMA(0,1,1)", "ARIMA(1,1,0)", "ARIMA(2,1,2)"]
    assert df["Converged"].tolist() == [True, True, False]


def test_ar2_preferred_over_overparameterised_by_bic():
    y = make_integrated_ar2()
    results = search_grid(y, [2], [0, 2], d=1, progress=False)
    by_order = {r.candidate.order: r for r in results}
    ar2 = by_order[(2, 1, 0)]
    arma22 = by_order[(2, 1, 2)]
    assert ar2.is_usable
    # Extra MA terms cost log(n) each under BIC; allow a small margin
    assert ar2.bic <= arma22.bic + 2.0
    assert ar2.coefficients["ar.L1"] == pytest.approx(0.5, abs=0.2)
    assert ar2.coefficients["ar.L2"] == pytest.approx(-0.3, abs=0.2)


def test_ljung_box_pvalue_bounds_and_degenerate():
    rng = np.random.default_rng(4)
    p = ljung_box_pvalue(rng.standard_normal(50), lags=10)
    assert 0.0 <= p <= 1.0
    assert np.isnan(ljung_box_pvalue(np.ones(20)))
    assert np.isnan(ljung_box_pvalue(np.array([1.0])))
    # Lag is capped at n - 1 for short residual vectors
    assert np.isfinite(ljung_box_pvalue(rng.standard_normal(5), lags=10))
