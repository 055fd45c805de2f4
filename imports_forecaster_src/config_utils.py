# imports_forecaster_src/config_utils.py

import logging

from config import ConfigurationError, get_config

logger = logging.getLogger(__name__)

# Initialize the global configuration manager
config_manager = None


def initialize_config(config_path=None):
    """
    Initializes the global configuration manager.
    This function loads and validates the project's YAML configuration. If the configuration
    cannot be loaded, it logs the error and proceeds with default settings.
    """
    global config_manager
    if config_manager is not None and config_path is None:
        return config_manager
    try:
        config_manager = get_config(config_path)
        validation_errors = config_manager.validate_configuration()
        if validation_errors:
            logger.warning("Configuration validation warnings: %s", validation_errors)
    except ConfigurationError as e:
        logger.error("Failed to initialize configuration: %s. Using defaults.", e)
        config_manager = None
    return config_manager


def get_config_value(key_path: str, default=None, args=None, cli_param=None):
    """
    Retrieves a configuration value, providing support for command-line overrides.
    The function prioritizes values in the following order:
    1. CLI argument (if provided)
    2. Configuration file
    3. Default value
    """
    # First priority: CLI argument
    if args and cli_param and hasattr(args, cli_param):
        cli_value = getattr(args, cli_param)
        if cli_value is not None:
            return cli_value

    # Second priority: Configuration file
    if config_manager:
        config_value = config_manager.get(key_path, default)
        if config_value is not None:
            return config_value

    # Third priority: Default value
    return default
