from pathlib import Path

import numpy as np
import pandas as pd
import pytest

from imports_forecaster_src.data_utils import load_imports_csv, series_from_records, validate_annual_series


def test_load_imports_csv_round_trip(imports_csv: Path, short_imports_series: pd.Series):
    s = load_imports_csv(imports_csv)
    assert s.index.name == "Year"
    assert s.index.dtype == np.int64
    assert s.name == "Imports"
    assert np.allclose(s.values, short_imports_series.values)
    assert s.index[0] == 1980


def test_load_imports_csv_sorts_and_ignores_extra_columns(tmp_path: Path):
    path = tmp_path / "unsorted.csv"
    pd.DataFrame({
        "Year": [2002, 2000, 2001],
        "Imports": [30.0, 10.0, 20.0],
        "Exports": [1.0, 2.0, 3.0],
    }).to_csv(path, index=False)
    s = load_imports_csv(path)
    assert s.index.tolist() == [2000, 2001, 2002]
    assert s.tolist() == [10.0, 20.0, 30.0]


def test_load_imports_csv_custom_columns(tmp_path: Path):
    path = tmp_path / "custom.csv"
    pd.DataFrame({"yr": [1999, 2000], "value": [5.0, 6.0]}).to_csv(path, index=False)
    s = load_imports_csv(path, year_col="yr", value_col="value")
    assert s.tolist() == [5.0, 6.0]


def test_load_imports_csv_drops_unparseable_rows(tmp_path: Path, caplog):
    path = tmp_path / "dirty.csv"
    path.write_text("Year,Imports\n2000,10\nfoo,11\n2001,n/a\n2001,12\n")
    with caplog.at_level("WARNING"):
        s = load_imports_csv(path)
    assert s.index.tolist() == [2000, 2001]
    assert s.tolist() == [10.0, 12.0]
    assert "Dropped 2" in caplog.text


def test_load_imports_csv_missing_file(tmp_path: Path):
    with pytest.raises(SystemExit):
        load_imports_csv(tmp_path / "nope.csv")


def test_load_imports_csv_missing_columns(tmp_path: Path):
    path = tmp_path / "bad.csv"
    pd.DataFrame({"Year": [2000], "GDP": [1.0]}).to_csv(path, index=False)
    with pytest.raises(SystemExit):
        load_imports_csv(path)


def test_load_imports_csv_no_valid_rows(tmp_path: Path):
    path = tmp_path / "empty.csv"
    path.write_text("Year,Imports\nx,y\n")
    with pytest.raises(SystemExit):
        load_imports_csv(path)


def test_validate_annual_series_rejects_gaps_and_duplicates():
    with pytest.raises(ValueError, match="gaps"):
        validate_annual_series(pd.Series([1.0, 2.0, 3.0], index=[2000, 2001, 2003]))
    with pytest.raises(ValueError, match="Duplicate"):
        validate_annual_series(pd.Series([1.0, 2.0, 3.0], index=[2000, 2001, 2001]))
    with pytest.raises(ValueError, match="increasing"):
        validate_annual_series(pd.Series([1.0, 2.0], index=[2001, 2000]))
    with pytest.raises(ValueError, match="empty"):
        validate_annual_series(pd.Series([], dtype=float))


def test_series_from_records_pairs():
    s = series_from_records([(2001, 12.5), (2000, 10.0)])
    assert s.index.tolist() == [2000, 2001]
    assert s.tolist() == [10.0, 12.5]
