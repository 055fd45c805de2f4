# imports_forecaster_src/parsing_utils.py

from typing import Optional, List
import logging

logger = logging.getLogger(__name__)

DEFAULT_ORDER_RANGE = [0, 1, 2, 3, 4]


def parse_range_arg(s: Optional[str], default: str = "0-4", config_key: Optional[str] = None) -> List[int]:
    """
    Parse a CLI range argument like '0-4' or '0,1,2' into a list of integers.

    This function handles different input formats for specifying order ranges:
    - Range format: "0-4" becomes [0, 1, 2, 3, 4]
    - List format: "0,2,4" becomes [0, 2, 4]
    - A CLI value takes precedence; otherwise the configuration value, then ``default``

    Parameters
    ----------
    s : str, optional
        CLI range argument string to parse
    default : str, default="0-4"
        Default range if no CLI arg or config value provided
    config_key : str, optional
        Configuration key path for fallback value

    Returns
    -------
    List[int]
        Parsed range as sorted list of unique non-negative integers

    Examples
    --------
    >>> parse_range_arg("0-4")
    [0, 1, 2, 3, 4]
    >>> parse_range_arg("0,2,4")
    [0, 2, 4]
    """
    from .config_utils import get_config_value

    if s is not None and str(s).strip():
        txt = str(s).strip()
    elif config_key:
        range_value = get_config_value(config_key, default)
        # If we got a list from config, return it directly
        if isinstance(range_value, list):
            return sorted(set(int(x) for x in range_value))
        txt = str(range_value).strip() if range_value is not None else default
    else:
        txt = default

    out: List[int] = []

    # Handle range format (e.g., "0-4")
    if "-" in txt and "," not in txt:
        try:
            a, b = txt.split("-", 1)
            lo = int(a.strip())
            hi = int(b.strip())
            out = list(range(lo, hi + 1))
        except ValueError:
            logger.warning("Could not parse range '%s'", txt)
    # Handle comma-separated list format (e.g., "0,1,2")
    else:
        try:
            out = [int(x.strip()) for x in txt.split(",") if x.strip() != ""]
        except ValueError:
            logger.warning("Could not parse order list '%s'", txt)
            out = []

    out = [v for v in out if v >= 0]

    # Fallback to default if parsing failed
    if not out:
        logger.warning("Empty or invalid order range '%s'; using %s", txt, DEFAULT_ORDER_RANGE)
        out = list(DEFAULT_ORDER_RANGE)

    return sorted(set(out))


def validate_horizon(horizon: int) -> int:
    """
    Validate the forecast horizon.

    Raises
    ------
    ValueError
        If the horizon is not a positive integer
    """
    try:
        h = int(horizon)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid forecast horizon '{horizon}'. Must be a positive integer.")
    if h < 1 or h != float(horizon):
        raise ValueError(f"Invalid forecast horizon '{horizon}'. Must be a positive integer.")
    return h


def validate_confidence_level(level: float) -> float:
    """
    Validate a two-sided confidence level given in percent (e.g. 95).

    Raises
    ------
    ValueError
        If the level is not strictly between 0 and 100
    """
    lvl = float(level)
    if not 0.0 < lvl < 100.0:
        raise ValueError(f"Invalid confidence level '{level}'. Must lie strictly between 0 and 100.")
    return lvl


def validate_log_level(log_level: str) -> str:
    """
    Validate and normalize logging level specification.

    Parameters
    ----------
    log_level : str
        Logging level to validate

    Returns
    -------
    str
        Validated logging level

    Raises
    ------
    ValueError
        If the logging level is not supported
    """
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    level_upper = log_level.upper()
    if level_upper not in valid_levels:
        raise ValueError(f"Invalid log level '{log_level}'. Must be one of: {valid_levels}")
    return level_upper
