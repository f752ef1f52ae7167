"""Tests for descriptive statistics."""

import math

import pandas as pd
import pytest

from closefit.preparation import correlation_matrix, describe_column, describe_table
from closefit.preparation.statistics import STATISTIC_COLUMNS


class TestDescribeColumn:
    """Tests for describe_column."""

    def test_known_values(self) -> None:
        """Test statistics for a small known sample."""
        stats = describe_column(pd.Series([1.0, 2.0, 3.0, 4.0]))
        assert stats["mean"] == pytest.approx(2.5)
        assert stats["sd"] == pytest.approx(math.sqrt(5 / 3))
        assert stats["min"] == 1.0
        assert stats["max"] == 4.0
        assert stats["median"] == pytest.approx(2.5)
        assert stats["q25"] == pytest.approx(1.75)
        assert stats["q75"] == pytest.approx(3.25)
        assert stats["missing"] == 0

    def test_missing_count(self) -> None:
        """Test that missing values are counted and excluded."""
        stats = describe_column(pd.Series([1.0, None, 3.0]))
        assert stats["missing"] == 1
        assert stats["mean"] == pytest.approx(2.0)


class TestDescribeTable:
    """Tests for describe_table."""

    def test_one_row_per_variable(self, price_table: pd.DataFrame) -> None:
        """Test layout of the statistics table."""
        stats = describe_table(price_table)
        assert list(stats["variable"]) == ["Feature1", "Feature2", "Close"]
        assert list(stats.columns) == ["variable", *STATISTIC_COLUMNS]

    def test_sample_standard_deviation(self, price_table: pd.DataFrame) -> None:
        """Test that sd uses the N-1 denominator."""
        stats = describe_table(price_table).set_index("variable")
        assert stats.loc["Close", "sd"] == pytest.approx(price_table["Close"].std(ddof=1))

    def test_ignores_text_columns(self) -> None:
        """Test that non-numeric columns are skipped."""
        df = pd.DataFrame({"Date": ["a", "b"], "Close": [1.0, 2.0]})
        assert list(describe_table(df)["variable"]) == ["Close"]


class TestCorrelationMatrix:
    """Tests for correlation_matrix."""

    def test_narrow_table(self) -> None:
        """Test that two columns give no matrix."""
        df = pd.DataFrame({"Open": [1.0, 2.0, 3.0], "Close": [2.0, 4.0, 5.0]})
        assert correlation_matrix(df) is None

    def test_wide_table(self, price_table: pd.DataFrame) -> None:
        """Test a symmetric matrix with unit diagonal."""
        corr = correlation_matrix(price_table)
        assert corr is not None
        assert corr.shape == (3, 3)
        for col in corr.columns:
            assert corr.loc[col, col] == pytest.approx(1.0)
        assert corr.loc["Feature1", "Close"] == pytest.approx(corr.loc["Close", "Feature1"])
        assert corr.loc["Feature1", "Close"] > 0.5
