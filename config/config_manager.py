"""YAML configuration management for the imports ARIMA forecaster.

Settings live in YAML files inside the ``config/`` directory and are read
with dotted key paths such as ``model.search_space.p_range``.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent
DEFAULT_CONFIG_FILE = CONFIG_DIR / "model_config.yaml"
CONFIG_ENV_VAR = "IMPORTS_FORECASTER_CONFIG"


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be read or parsed."""


class ConfigurationManager:
    """Loads YAML configuration and resolves dotted key paths."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Parameters
        ----------
        config_path : str or Path, optional
            YAML file to load. Defaults to ``$IMPORTS_FORECASTER_CONFIG`` or
            the bundled ``model_config.yaml``.
        """
        if config_path is None:
            config_path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_FILE
        self.config_path = Path(config_path)
        self._data: Dict[str, Any] = self._load(self.config_path)

    @staticmethod
    def _load(path: Path) -> Dict[str, Any]:
        if not path.is_file():
            raise ConfigurationError(f"Configuration file not found: {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Top-level YAML in {path} must be a mapping")
        logger.debug("Loaded configuration from %s", path)
        return data

    def get(self, key_path: str, default: Any = None) -> Any:
        """Return the value at a dotted key path, or ``default`` when any segment is missing."""
        node: Any = self._data
        for part in key_path.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def validate_configuration(self) -> Dict[str, List[str]]:
        """
        Check value types and ranges.

        Returns
        -------
        Dict[str, List[str]]
            Section name -> list of problems; empty when the configuration is valid.
        """
        errors: Dict[str, List[str]] = {}

        def _add(section: str, msg: str) -> None:
            errors.setdefault(section, []).append(msg)

        d = self.get("model.fixed_parameters.d", 1)
        if not isinstance(d, int) or d < 0:
            _add("model", f"fixed_parameters.d must be a non-negative integer, got {d!r}")

        maxiter = self.get("model.fit.maxiter", 200)
        if not isinstance(maxiter, int) or maxiter < 1:
            _add("model", f"fit.maxiter must be a positive integer, got {maxiter!r}")

        for key in ("stationarity.alpha", "diagnostics.significance_level"):
            val = self.get(key, 0.05)
            if not isinstance(val, (int, float)) or not 0.0 < float(val) < 1.0:
                _add(key.split(".")[0], f"{key} must lie in (0, 1), got {val!r}")

        for key in ("diagnostics.ljung_box_lags", "diagnostics.ljung_box_sweep_max_lag", "diagnostics.arch_lags"):
            val = self.get(key, 1)
            if not isinstance(val, int) or val < 1:
                _add("diagnostics", f"{key} must be a positive integer, got {val!r}")

        horizon = self.get("forecast.horizon", 5)
        if not isinstance(horizon, int) or horizon < 1:
            _add("forecast", f"forecast.horizon must be a positive integer, got {horizon!r}")

        level = self.get("forecast.confidence_level", 95)
        if not isinstance(level, (int, float)) or not 0.0 < float(level) < 100.0:
            _add("forecast", f"forecast.confidence_level must lie in (0, 100), got {level!r}")

        return errors


_config_instance: Optional[ConfigurationManager] = None


def get_config(config_path: Optional[Union[str, Path]] = None) -> ConfigurationManager:
    """Return the process-wide ConfigurationManager, creating it on first use."""
    global _config_instance
    if config_path is not None:
        return ConfigurationManager(config_path)
    if _config_instance is None:
        _config_instance = ConfigurationManager()
    return _config_instance
