"""Tests for OLS fitting."""

import numpy as np
import pandas as pd
import pytest

from closefit.errors import InsufficientDataError, RankDeficiencyError, SchemaError
from closefit.modeling import INTERCEPT, check_full_rank, fit_ols, resolve_feature_columns


class TestFitOLS:
    """Tests for fit_ols."""

    def test_recovers_exact_coefficients(self, linear_table: pd.DataFrame) -> None:
        """Test that noise-free data gives the generating coefficients and R² ~ 1."""
        model = fit_ols(linear_table, "Close", ["x1", "x2"])
        assert model.coefficients["x1"] == pytest.approx(2.0, abs=1e-8)
        assert model.coefficients["x2"] == pytest.approx(-3.0, abs=1e-8)
        assert model.intercept == pytest.approx(5.0, abs=1e-8)
        assert model.r2 == pytest.approx(1.0)

    def test_matches_least_squares(self, price_table: pd.DataFrame) -> None:
        """Test estimates against numpy's least-squares solution."""
        model = fit_ols(price_table, "Close", ["Feature1", "Feature2"])
        design = np.column_stack(
            [np.ones(len(price_table)), price_table[["Feature1", "Feature2"]].to_numpy()]
        )
        beta, *_ = np.linalg.lstsq(design, price_table["Close"].to_numpy(), rcond=None)
        np.testing.assert_allclose(
            model.coefficient_table["estimate"].to_numpy(), beta, rtol=1e-8
        )

    def test_summary_statistics(self, price_table: pd.DataFrame) -> None:
        """Test degrees of freedom, residual std error and adjusted R²."""
        model = fit_ols(price_table, "Close", ["Feature1", "Feature2"])
        n, k = 1000, 2
        assert model.n_obs == n
        assert model.df_model == k
        assert model.df_residual == n - k - 1
        expected_rse = np.sqrt(np.sum(model.residuals**2) / (n - k - 1))
        assert model.residual_std_error == pytest.approx(expected_rse)
        assert model.adj_r2 == pytest.approx(1 - (1 - model.r2) * (n - 1) / (n - k - 1))
        assert model.f_pvalue < 1e-10
        assert 0.0 < model.r2 < 1.0

    def test_coefficient_table_layout(self, price_table: pd.DataFrame) -> None:
        """Test that the intercept comes first and all columns are present."""
        model = fit_ols(price_table, "Close", ["Feature1", "Feature2"])
        table = model.coefficient_table
        assert list(table.index) == [INTERCEPT, "Feature1", "Feature2"]
        assert list(table.columns) == ["estimate", "std_error", "t_value", "p_value"]
        assert (table["std_error"] > 0).all()
        assert table.loc["Feature1", "p_value"] < 0.001

    def test_predict_reproduces_fitted_values(self, price_table: pd.DataFrame) -> None:
        """Test that predict() on training rows returns the fitted values."""
        model = fit_ols(price_table, "Close", ["Feature1", "Feature2"])
        np.testing.assert_allclose(model.predict(price_table), model.fitted_values)
        np.testing.assert_allclose(
            model.residuals, price_table["Close"].to_numpy() - model.fitted_values
        )

    def test_predict_missing_feature(self, linear_table: pd.DataFrame) -> None:
        """Test that predict() requires every feature."""
        model = fit_ols(linear_table, "Close", ["x1", "x2"])
        with pytest.raises(SchemaError, match="x2"):
            model.predict(linear_table[["x1"]])

    def test_diagnostics_attached(self, price_table: pd.DataFrame) -> None:
        """Test that both residual tests are computed for a normal fit."""
        model = fit_ols(price_table, "Close", ["Feature1", "Feature2"])
        assert model.diagnostics.normality.computed
        assert model.diagnostics.heteroscedasticity.computed
        assert 0.0 <= model.diagnostics.normality.p_value <= 1.0

    def test_collinear_features(self, linear_table: pd.DataFrame) -> None:
        """Test that perfectly collinear features raise RankDeficiencyError."""
        df = linear_table.assign(x3=2 * linear_table["x1"])
        with pytest.raises(RankDeficiencyError) as exc_info:
            fit_ols(df, "Close", ["x1", "x2", "x3"])
        error = exc_info.value
        assert error.rank == 3
        assert error.n_columns == 4
        assert set(error.columns) <= {"x1", "x3"}
        assert isinstance(error, ValueError)

    def test_constant_feature(self, linear_table: pd.DataFrame) -> None:
        """Test that a feature collinear with the intercept is rejected."""
        df = linear_table.assign(x3=1.0)
        with pytest.raises(RankDeficiencyError):
            fit_ols(df, "Close", ["x1", "x3"])

    def test_too_few_rows(self, linear_table: pd.DataFrame) -> None:
        """Test that n <= number of coefficients raises InsufficientDataError."""
        with pytest.raises(InsufficientDataError):
            fit_ols(linear_table.head(3), "Close", ["x1", "x2"])

    def test_missing_column(self, linear_table: pd.DataFrame) -> None:
        """Test that absent columns raise SchemaError."""
        with pytest.raises(SchemaError, match="x9"):
            fit_ols(linear_table, "Close", ["x1", "x9"])


class TestCheckFullRank:
    """Tests for check_full_rank."""

    def test_full_rank(self) -> None:
        """Test that independent columns pass."""
        check_full_rank(np.eye(4, 3), ["a", "b", "c"])

    def test_zero_matrix(self) -> None:
        """Test that an all-zero matrix has rank 0."""
        with pytest.raises(RankDeficiencyError) as exc_info:
            check_full_rank(np.zeros((4, 2)), ["a", "b"])
        assert exc_info.value.rank == 0


class TestResolveFeatureColumns:
    """Tests for resolve_feature_columns."""

    def test_all_other_columns(self) -> None:
        """Test default feature inference."""
        assert resolve_feature_columns(["Open", "Close", "High"], "Close") == [
            "Open",
            "High",
        ]

    def test_configured(self) -> None:
        """Test explicit feature lists."""
        assert resolve_feature_columns(["Open", "High", "Close"], "Close", ["High"]) == [
            "High"
        ]

    def test_missing_target(self) -> None:
        """Test that a missing target raises SchemaError."""
        with pytest.raises(SchemaError, match="Target column"):
            resolve_feature_columns(["Open"], "Close")

    def test_missing_configured_feature(self) -> None:
        """Test that unknown configured features raise SchemaError."""
        with pytest.raises(SchemaError, match="Volume"):
            resolve_feature_columns(["Open", "Close"], "Close", ["Volume"])

    def test_target_in_features(self) -> None:
        """Test that the target cannot be a feature."""
        with pytest.raises(SchemaError):
            resolve_feature_columns(["Open", "Close"], "Close", ["Open", "Close"])

    def test_no_features(self) -> None:
        """Test that a target-only table raises SchemaError."""
        with pytest.raises(SchemaError, match="No feature columns"):
            resolve_feature_columns(["Close"], "Close")
