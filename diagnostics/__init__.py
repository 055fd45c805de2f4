"""Residual diagnostics for the imports ARIMA forecaster.

This package validates a fitted model's residuals:
- Serial correlation (Ljung-Box, single lag and lag sweep)
- Normality (Shapiro-Wilk)
- Heteroskedasticity (Ljung-Box on squared residuals, ARCH-LM)
"""

from .heteroskedasticity import (
    HeteroskedasticityTester,
    HeteroskedasticityResult,
)

from .residual_diagnostics import (
    ResidualDiagnostics,
    DiagnosticReport,
    DiagnosticResult,
    DiagnosticTest,
    diagnose
)

__all__ = [
    # Heteroskedasticity testing
    'HeteroskedasticityTester',
    'HeteroskedasticityResult',

    # Residual diagnostics
    'ResidualDiagnostics',
    'DiagnosticReport',
    'DiagnosticResult',
    'DiagnosticTest',
    'diagnose'
]

# Version info
__version__ = '1.0.0'
