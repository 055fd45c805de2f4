import numpy as np
import pandas as pd
import pytest

from diagnostics import (
    DiagnosticReport, DiagnosticTest, HeteroskedasticityTester, ResidualDiagnostics, diagnose
)
from imports_forecaster_src.exceptions import NumericalError


def _arch_residuals(n=500, alpha0=1.0, alpha1=0.8, seed=123):
    rng = np.random.default_rng(seed)
    resid = np.zeros(n)
    sigma_sq = alpha0
    for t in range(n):
        if t > 0:
            sigma_sq = alpha0 + alpha1 * resid[t - 1] ** 2
        resid[t] = rng.normal(0.0, np.sqrt(sigma_sq))
    return pd.Series(resid)


def test_ljung_box_pvalue_in_unit_interval():
    rng = np.random.default_rng(0)
    rd = ResidualDiagnostics()
    for _ in range(10):
        res = rd.ljung_box_test(pd.Series(rng.standard_normal(60)))
        assert 0.0 <= res.p_value <= 1.0
        assert res.degrees_of_freedom == 10


def test_white_noise_passes_ljung_box_with_high_probability():
    rng = np.random.default_rng(2024)
    rd = ResidualDiagnostics()
    trials = 100
    passes = sum(rd.ljung_box_test(pd.Series(rng.standard_normal(100))).passed for _ in range(trials))
    assert passes / trials > 0.8


def test_white_noise_report():
    rng = np.random.default_rng(9)
    report = diagnose(pd.Series(rng.standard_normal(120)))
    assert isinstance(report, DiagnosticReport)
    assert set(report.pass_flags) == {t.value for t in DiagnosticTest}
    assert not report.unavailable
    for p in (report.ljung_box_p, report.shapiro_p, report.arch_p):
        assert 0.0 <= p <= 1.0
    assert report.pass_flags["ljung_box"] == (report.ljung_box_p > 0.05)
    assert "lm_pvalue" in report.test_results["arch"].additional_stats


def test_ljung_box_sweep_shape():
    rng = np.random.default_rng(5)
    rd = ResidualDiagnostics(sweep_max_lag=20)
    sweep = rd.ljung_box_sweep(pd.Series(rng.standard_normal(80)))
    assert sweep.index.tolist() == list(range(1, 21))
    assert sweep.index.name == "lag"
    assert list(sweep.columns) == ["lb_stat", "lb_pvalue"]
    assert ((sweep["lb_pvalue"] >= 0) & (sweep["lb_pvalue"] <= 1)).all()


def test_ljung_box_sweep_truncated_for_short_residuals():
    rng = np.random.default_rng(6)
    sweep = ResidualDiagnostics().ljung_box_sweep(pd.Series(rng.standard_normal(8)))
    assert sweep.index.max() == 7


def test_constant_residuals_are_unavailable_not_fatal():
    report = diagnose(pd.Series(np.zeros(40)))
    assert report.pass_flags == {}
    assert {"ljung_box", "shapiro_wilk", "arch", "ljung_box_sweep"} <= set(report.unavailable)
    assert np.isnan(report.ljung_box_p)
    assert not report.all_passed
    frame = report.summary_frame()
    assert frame["verdict"].str.startswith("UNAVAILABLE").all()


def test_short_residuals_mark_only_failing_tests_unavailable():
    rng = np.random.default_rng(8)
    report = diagnose(pd.Series(rng.standard_normal(8)))
    # Ljung-Box at lag 10 needs 11 residuals; Shapiro-Wilk and the ARCH test still run
    assert "ljung_box" in report.unavailable
    assert "shapiro_wilk" in report.pass_flags
    assert "arch" in report.pass_flags
    assert "ljung_box" not in report.pass_flags


def test_arch_effects_detected():
    report = diagnose(_arch_residuals())
    assert report.pass_flags["arch"] is False
    assert report.test_results["arch"].is_significant


def test_heteroskedasticity_tester_rejects_degenerate_input():
    tester = HeteroskedasticityTester()
    with pytest.raises(NumericalError):
        tester.test_arch_lm(pd.Series([0.1, -0.2, 0.3]), lags=5)
    with pytest.raises(NumericalError):
        tester.test_arch_ljung_box(pd.Series(np.ones(30)), lags=5)


def test_summary_frame_columns():
    rng = np.random.default_rng(10)
    frame = diagnose(rng.standard_normal(60)).summary_frame()
    assert list(frame.columns) == ["test", "statistic", "p_value", "verdict"]
    assert set(frame["verdict"]) <= {"PASS", "FAIL"}
    assert len(frame) == 3
