"""Tests for tabular input loading."""

from pathlib import Path

import pandas as pd
import pytest

from closefit.errors import (
    ClosefitError,
    EmptyDatasetError,
    InputNotFoundError,
    SchemaError,
    UnreadableInputError,
)
from closefit.ingestion import TabularFileLoader, load_table, read_table


class TestLoadTable:
    """Tests for load_table."""

    def test_csv_drops_non_numeric_columns(self, price_csv: Path) -> None:
        """Test that a Date column is dropped and numeric columns kept."""
        df = load_table(price_csv, "Close")
        assert list(df.columns) == ["Feature1", "Feature2", "Close"]
        assert len(df) == 1000
        assert isinstance(df.index, pd.RangeIndex)

    def test_explicit_feature_columns(self, tmp_path: Path) -> None:
        """Test that only configured features and the target are kept."""
        path = tmp_path / "wide.csv"
        pd.DataFrame(
            {"Open": [1.0, 2.0], "High": [2.0, 3.0], "Volume": [10, 20], "Close": [1.5, 2.5]}
        ).to_csv(path, index=False)

        df = load_table(path, "Close", ["Open", "High"])
        assert list(df.columns) == ["Open", "High", "Close"]

    def test_excel_input(self, tmp_path: Path, price_table: pd.DataFrame) -> None:
        """Test reading a spreadsheet."""
        path = tmp_path / "prices.xlsx"
        price_table.head(20).to_excel(path, index=False)

        df = load_table(path, "Close")
        assert df.shape == (20, 3)
        assert df["Close"].dtype == float

    def test_parquet_input(self, tmp_path: Path, price_table: pd.DataFrame) -> None:
        """Test reading a Parquet file."""
        path = tmp_path / "prices.parquet"
        price_table.head(20).to_parquet(path)

        df = load_table(path, "Close")
        assert df.shape == (20, 3)

    def test_missing_values_are_kept(self, tmp_path: Path) -> None:
        """Test that incomplete rows survive loading (cleaning removes them)."""
        path = tmp_path / "gaps.csv"
        path.write_text("Open,Close\n1.0,2.0\n,3.0\n2.0,\n")
        df = load_table(path, "Close")
        assert len(df) == 3
        assert df.isna().sum().sum() == 2

    def test_missing_target(self, tmp_path: Path) -> None:
        """Test that a missing target column fails schema validation."""
        path = tmp_path / "no_target.csv"
        path.write_text("Open,High\n1.0,2.0\n")
        with pytest.raises(SchemaError, match="InputTableSchema"):
            load_table(path, "Close")

    def test_non_numeric_target(self, tmp_path: Path) -> None:
        """Test that a text target column fails schema validation."""
        path = tmp_path / "text_target.csv"
        path.write_text("Open,Close\n1.0,high\n2.0,low\n")
        with pytest.raises(SchemaError):
            load_table(path, "Close")


class TestReadErrors:
    """Tests for input failure modes."""

    def test_file_not_found(self, tmp_path: Path) -> None:
        """Test that a missing file raises InputNotFoundError."""
        with pytest.raises(InputNotFoundError) as exc_info:
            load_table(tmp_path / "missing.csv", "Close")
        assert isinstance(exc_info.value, FileNotFoundError)
        assert isinstance(exc_info.value, ClosefitError)

    def test_unsupported_format(self, tmp_path: Path) -> None:
        """Test that unknown suffixes raise UnreadableInputError."""
        path = tmp_path / "prices.json"
        path.write_text("{}")
        with pytest.raises(UnreadableInputError, match="Unsupported input format"):
            read_table(path)

    def test_directory(self, tmp_path: Path) -> None:
        """Test that a directory path is rejected."""
        with pytest.raises(UnreadableInputError, match="not a file"):
            read_table(tmp_path)

    def test_corrupt_spreadsheet(self, tmp_path: Path) -> None:
        """Test that an unparsable spreadsheet raises UnreadableInputError."""
        path = tmp_path / "broken.xlsx"
        path.write_bytes(b"this is not a spreadsheet")
        with pytest.raises(UnreadableInputError, match="Could not read"):
            read_table(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        """Test that a zero-byte file raises EmptyDatasetError."""
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(EmptyDatasetError):
            read_table(path)

    def test_header_only(self, tmp_path: Path) -> None:
        """Test that a file without rows raises EmptyDatasetError."""
        path = tmp_path / "header.csv"
        path.write_text("Open,Close\n")
        with pytest.raises(EmptyDatasetError, match="no rows"):
            load_table(path, "Close")


class TestTabularFileLoader:
    """Tests for TabularFileLoader."""

    def test_load_without_validation(self, tmp_path: Path) -> None:
        """Test that validation can be skipped."""
        path = tmp_path / "no_target.csv"
        path.write_text("Open,High\n1.0,2.0\n")
        loader = TabularFileLoader(path, "Close")
        df = loader.load(validate=False)
        assert list(df.columns) == ["Open", "High"]

    def test_read_table_keeps_all_columns(self, price_csv: Path) -> None:
        """Test that read_table does not drop text columns."""
        df = read_table(price_csv)
        assert "Date" in df.columns

    def test_boolean_columns_dropped(self, tmp_path: Path) -> None:
        """Test that True/False columns are not treated as numeric."""
        path = tmp_path / "flags.csv"
        path.write_text("Open,Holiday,Close\n1.0,True,1.5\n2.0,False,2.5\n")
        df = load_table(path, "Close")
        assert list(df.columns) == ["Open", "Close"]

    def test_required_boolean_coerced(self, tmp_path: Path) -> None:
        """Test that a configured True/False feature becomes 0/1 floats."""
        path = tmp_path / "flags.csv"
        path.write_text("Open,Holiday,Close\n1.0,True,1.5\n2.0,False,2.5\n")
        df = load_table(path, "Close", ["Open", "Holiday"])
        assert list(df.columns) == ["Open", "Holiday", "Close"]
        assert list(df["Holiday"]) == [1.0, 0.0]

    def test_load_keeps_text_columns(self, price_csv: Path) -> None:
        """Test that load() returns full records for row cleaning."""
        loader = TabularFileLoader(price_csv, "Close")
        df = loader.load()
        assert "Date" in df.columns
        assert list(loader.select_model_columns(df).columns) == [
            "Feature1",
            "Feature2",
            "Close",
        ]
