# imports_forecaster_src/__init__.py

"""
Imports Forecaster ARIMA - Annual Time Series Forecasting Package

This package fits Box-Cox transformed ARIMA(p, 1, q) models to an annual
imports series, validates the residuals and produces interval forecasts.

Key Components
--------------
- config_utils: Configuration management and CLI override support
- data_utils: Loading and validating annual (Year, value) series
- parsing_utils: Command-line argument and configuration parsing
- transform_utils: Box-Cox estimation, forward/inverse transform, differencing
- stationarity_utils: Augmented Dickey-Fuller checks
- forecasting_utils: ARIMA grid search, selection and psi-weight forecasting
- plotting_utils: Visualization of series, diagnostics and forecasts
- report_utils: Plain-text summaries of each stage
- file_utils: CSV output, markdown report and path utilities
- main: Main entry point and workflow orchestration

Residual tests live in the sibling ``diagnostics`` package.

Usage
-----
    # Command-line usage
    python -m imports_forecaster_src.main --data data/imports.csv

    # Programmatic usage
    from imports_forecaster_src.main import run_imports_workflow
"""

__version__ = "1.0.0"
__author__ = "Imports Forecaster Development Team"

# main, report_utils and plotting_utils depend on the diagnostics package,
# which itself imports .exceptions; they are not re-exported here.
from .exceptions import ForecasterError, DomainError, ConvergenceError, EmptySetError, NumericalError
from .models import TransformParameters, ModelCandidate, FitResult, ForecastResult
from .config_utils import initialize_config, get_config_value
from .data_utils import load_imports_csv, series_from_records
from .transform_utils import fit_transform, invert_transform, estimate_lambda, difference
from .stationarity_utils import adf_test
from .forecasting_utils import search_grid, select_best, forecast

__all__ = [
    # Core functionality
    "initialize_config",
    "get_config_value",
    "load_imports_csv",
    "series_from_records",
    "fit_transform",
    "invert_transform",
    "estimate_lambda",
    "difference",
    "adf_test",
    "search_grid",
    "select_best",
    "forecast",
    # Data model
    "TransformParameters",
    "ModelCandidate",
    "FitResult",
    "ForecastResult",
    # Errors
    "ForecasterError",
    "DomainError",
    "ConvergenceError",
    "EmptySetError",
    "NumericalError",
    # Version info
    "__version__",
    "__author__"
]
