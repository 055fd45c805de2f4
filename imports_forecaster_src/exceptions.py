# imports_forecaster_src/exceptions.py

"""
Error types raised by the imports forecasting workflow.

Policy
------
- DomainError: propagates to the caller (invalid input for a power transform).
- ConvergenceError: absorbed per grid candidate; the candidate is excluded.
- EmptySetError: propagates; no candidate could be fit, the run cannot continue.
- NumericalError: absorbed per diagnostic test; the test is reported unavailable.
"""


class ForecasterError(Exception):
    """Base class for all workflow errors."""


class DomainError(ForecasterError, ValueError):
    """Input lies outside the domain of a Box-Cox transform or its inverse."""


class ConvergenceError(ForecasterError):
    """Maximum-likelihood estimation did not converge for a candidate order."""

    def __init__(self, message: str, order=None):
        super().__init__(message)
        self.order = order


class EmptySetError(ForecasterError):
    """No candidate model is available for selection."""


class NumericalError(ForecasterError):
    """A statistical test received degenerate input and cannot produce a p-value."""

    def __init__(self, message: str, test_name: str = ""):
        super().__init__(message)
        self.test_name = test_name
