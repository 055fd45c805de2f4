"""Configuration management for the imports ARIMA forecaster."""

from .config_manager import (
    ConfigurationError,
    ConfigurationManager,
    get_config,
)

__all__ = ["ConfigurationError", "ConfigurationManager", "get_config"]
