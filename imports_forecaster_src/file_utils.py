# imports_forecaster_src/file_utils.py

import pandas as pd
from pathlib import Path
from typing import List, Optional
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> None:
    """
    Create directory if it doesn't exist, including all parent directories.

    Parameters
    ----------
    path : Path
        Directory path to create

    Notes
    -----
    Uses mkdir with parents=True and exist_ok=True for safe operation.
    No error is raised if the directory already exists.
    """
    path.mkdir(parents=True, exist_ok=True)


def resolve_path(path_str: str, base_dir: Path) -> Path:
    """
    Resolve a path string relative to a base directory if not absolute.

    Examples
    --------
    >>> resolve_path("data/imports.csv", Path("/project"))
    PosixPath('/project/data/imports.csv')
    >>> resolve_path("/absolute/path.csv", Path("/project"))
    PosixPath('/absolute/path.csv')
    """
    path = Path(path_str)
    return path if path.is_absolute() else (base_dir / path)


def save_frame_csv(df: pd.DataFrame, csv_path: Path, index: bool = False) -> Path:
    """
    Write a DataFrame to CSV, creating parent directories.

    Returns
    -------
    Path
        The written path
    """
    ensure_dir(csv_path.parent)
    df.to_csv(csv_path, index=index)
    logger.info("Saved %s", csv_path)
    return csv_path


def append_eval_md(eval_md_path: Path, title: str, body: str) -> None:
    """
    Append a section to the markdown run report with a UTC timestamp.

    Parameters
    ----------
    eval_md_path : Path
        Path to markdown file
    title : str
        Section title
    body : str
        Section content

    Notes
    -----
    Adds ISO timestamp and formats as markdown section with level 2 heading.
    """
    ensure_dir(eval_md_path.parent)
    ts = datetime.now(timezone.utc).isoformat()
    with eval_md_path.open("a", encoding="utf-8") as f:
        f.write(f"\n\n## {title}  \n")
        f.write(f"_timestamp: {ts}_\n\n")
        f.write(body.strip() + "\n")


def md_table_from_df(df: pd.DataFrame,
                    max_rows: int = 30,
                    columns: Optional[List[str]] = None,
                    float_fmt: str = "{:.4f}",
                    index: bool = False) -> str:
    """
    Convert a DataFrame to markdown table format.

    Parameters
    ----------
    df : pd.DataFrame
        DataFrame to convert
    max_rows : int, default=30
        Maximum number of rows to include
    columns : Optional[List[str]]
        Specific columns to include (None for all)
    float_fmt : str, default="{:.4f}"
        Format applied to float cells
    index : bool, default=False
        Include the index as the first column

    Returns
    -------
    str
        Markdown table string, or empty string if there are no columns
    """
    if columns is not None:
        keep = [c for c in columns if c in df.columns]
        if keep:
            df = df.loc[:, keep]

    df_disp = df.head(max_rows).copy()
    if index:
        df_disp = df_disp.reset_index()
    cols = list(df_disp.columns)

    if not cols:
        return ""

    def _fmt(v) -> str:
        if isinstance(v, float):
            return float_fmt.format(v)
        return str(v)

    # Create markdown table
    header = "| " + " | ".join(str(c) for c in cols) + " |"
    separator = "| " + " | ".join("---" for _ in cols) + " |"

    rows = []
    # itertuples keeps per-column dtypes, so integer years stay integers
    for row in df_disp.itertuples(index=False, name=None):
        rows.append("| " + " | ".join(_fmt(v) for v in row) + " |")

    return "\n".join([header, separator] + rows)
