# imports_forecaster_src/data_utils.py

import numpy as np
import pandas as pd
from pathlib import Path
from typing import Iterable, Tuple, Union
import logging

logger = logging.getLogger(__name__)


def validate_annual_series(series: pd.Series) -> pd.Series:
    """
    Check the annual time-series invariants: integer years, strictly increasing, no gaps.

    Parameters
    ----------
    series : pd.Series
        Values indexed by year

    Returns
    -------
    pd.Series
        The same series (float values, int64 index named 'Year')

    Raises
    ------
    ValueError
        If the series is empty, has duplicate years, or skips a year
    """
    if series.empty:
        raise ValueError("Annual series cannot be empty")

    years = np.asarray(series.index, dtype=np.int64)
    if len(np.unique(years)) != len(years):
        dupes = sorted(pd.Index(years)[pd.Index(years).duplicated()].unique().tolist())
        raise ValueError(f"Duplicate years in series: {dupes}")

    steps = np.diff(years)
    if np.any(steps <= 0):
        raise ValueError("Years must be strictly increasing")
    if np.any(steps != 1):
        gaps = [int(y) for y, s in zip(years[:-1], steps) if s != 1]
        raise ValueError(f"Annual series has gaps after year(s): {gaps}")

    out = pd.Series(np.asarray(series.values, dtype=float),
                    index=pd.Index(years, name="Year"),
                    name=series.name)
    return out


def series_from_records(records: Union[pd.DataFrame, Iterable[Tuple[int, float]]],
                        year_col: str = "Year",
                        value_col: str = "Imports") -> pd.Series:
    """
    Build an annual series from in-memory (year, value) pairs or a DataFrame.

    Examples
    --------
    >>> series_from_records([(2000, 10.0), (2001, 12.5)]).tolist()
    [10.0, 12.5]
    """
    if isinstance(records, pd.DataFrame):
        df = records.loc[:, [year_col, value_col]].copy()
    else:
        df = pd.DataFrame(list(records), columns=[year_col, value_col])
    df = df.sort_values(year_col)
    series = pd.Series(df[value_col].to_numpy(dtype=float),
                       index=df[year_col].to_numpy(dtype=np.int64),
                       name=value_col)
    return validate_annual_series(series)


def load_imports_csv(series_path: Path,
                     year_col: str = "Year",
                     value_col: str = "Imports") -> pd.Series:
    """
    Load an annual imports series from a CSV file.

    Only the year and value columns are used; any other columns are ignored.

    Parameters
    ----------
    series_path : Path
        CSV file with at least ``year_col`` and ``value_col``
    year_col : str, default="Year"
        Column holding integer years
    value_col : str, default="Imports"
        Column holding import values

    Returns
    -------
    pd.Series
        Float series indexed by integer year (index name 'Year')

    Raises
    ------
    SystemExit
        If the file doesn't exist, lacks required columns, or contains no valid data.
    ValueError
        If the parsed years are duplicated or have gaps.
    """
    series_path = Path(series_path)
    if not series_path.exists():
        raise SystemExit(f"Series CSV not found: {series_path}")

    logger.info("Loading imports series from: %s", series_path)
    df = pd.read_csv(series_path)

    missing = [c for c in (year_col, value_col) if c not in df.columns]
    if missing:
        raise SystemExit(f"Series CSV must contain '{year_col}' and '{value_col}' columns (missing: {missing}).")

    # Parse and validate data
    df = df.loc[:, [year_col, value_col]].copy()
    df[year_col] = pd.to_numeric(df[year_col], errors="coerce")
    df[value_col] = pd.to_numeric(df[value_col], errors="coerce")
    n_before = len(df)
    df = df.dropna(subset=[year_col, value_col])
    if len(df) < n_before:
        logger.warning("Dropped %d unparseable row(s) from %s", n_before - len(df), series_path)

    if df.empty:
        raise SystemExit("No valid rows found in series CSV after parsing.")

    series = series_from_records(df, year_col=year_col, value_col=value_col)
    logger.info("Loaded %d annual observations (%d-%d)", len(series), series.index[0], series.index[-1])
    return series
