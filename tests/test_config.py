import types
from pathlib import Path

import pytest

from config import ConfigurationError, ConfigurationManager, get_config
from config.config_manager import CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE
from imports_forecaster_src import config_utils


def test_bundled_configuration_loads_and_validates():
    cfg = ConfigurationManager()
    assert cfg.config_path == DEFAULT_CONFIG_FILE
    assert cfg.get("model.fixed_parameters.d") == 1
    assert cfg.get("model.search_space.p_range") == "0-4"
    assert cfg.get("forecast.horizon") == 5
    assert cfg.get("transform.boxcox.enabled") is True
    assert cfg.validate_configuration() == {}


def test_get_missing_key_returns_default():
    cfg = ConfigurationManager()
    assert cfg.get("model.does.not.exist", 42) == 42
    assert cfg.get("forecast.horizon.deeper", "x") == "x"


def test_missing_or_invalid_files_raise(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        ConfigurationManager(tmp_path / "missing.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("model: [unclosed\n")
    with pytest.raises(ConfigurationError):
        ConfigurationManager(bad)

    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("just a string\n")
    with pytest.raises(ConfigurationError):
        ConfigurationManager(scalar)


def test_validation_reports_bad_values(tmp_path: Path):
    path = tmp_path / "cfg.yaml"
    path.write_text(
        "model:\n"
        "  fixed_parameters:\n"
        "    d: -1\n"
        "diagnostics:\n"
        "  significance_level: 1.5\n"
        "forecast:\n"
        "  horizon: 0\n"
        "  confidence_level: 120\n"
    )
    errors = ConfigurationManager(path).validate_configuration()
    assert set(errors) == {"model", "diagnostics", "forecast"}
    assert len(errors["forecast"]) == 2


def test_environment_variable_selects_file(tmp_path: Path, monkeypatch):
    path = tmp_path / "env.yaml"
    path.write_text("forecast:\n  horizon: 9\n")
    monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
    assert ConfigurationManager().get("forecast.horizon") == 9


def test_get_config_with_path_returns_fresh_manager(tmp_path: Path):
    path = tmp_path / "other.yaml"
    path.write_text("forecast:\n  horizon: 3\n")
    assert get_config(path).get("forecast.horizon") == 3
    assert get_config() is get_config()


def test_get_config_value_precedence(tmp_path: Path, monkeypatch):
    path = tmp_path / "cfg.yaml"
    path.write_text("forecast:\n  horizon: 7\n")
    monkeypatch.setattr(config_utils, "config_manager", ConfigurationManager(path))

    args = types.SimpleNamespace(horizon=12)
    assert config_utils.get_config_value("forecast.horizon", 5, args, "horizon") == 12

    args = types.SimpleNamespace(horizon=None)
    assert config_utils.get_config_value("forecast.horizon", 5, args, "horizon") == 7
    assert config_utils.get_config_value("forecast.confidence_level", 95) == 95

    monkeypatch.setattr(config_utils, "config_manager", None)
    assert config_utils.get_config_value("forecast.horizon", 5, args, "horizon") == 5


def test_initialize_config_falls_back_on_error(tmp_path: Path, monkeypatch, caplog):
    monkeypatch.setattr(config_utils, "config_manager", None)
    with caplog.at_level("ERROR"):
        assert config_utils.initialize_config(tmp_path / "missing.yaml") is None
    assert "Using defaults" in caplog.text


def test_initialize_config_warns_on_invalid_values(tmp_path: Path, monkeypatch, caplog):
    monkeypatch.setattr(config_utils, "config_manager", None)
    path = tmp_path / "cfg.yaml"
    path.write_text("forecast:\n  horizon: -2\n")
    with caplog.at_level("WARNING"):
        manager = config_utils.initialize_config(path)
    assert manager is not None
    assert "validation warnings" in caplog.text
