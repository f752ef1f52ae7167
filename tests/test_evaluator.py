"""Tests for held-out evaluation."""

import numpy as np
import pandas as pd
import pytest

from closefit.evaluation import EvaluationResult, evaluate_model
from closefit.modeling import Split, fit_ols, split_table
from closefit.normalization import NormalizationResult, normalize_table


@pytest.fixture
def normalization(price_table: pd.DataFrame) -> NormalizationResult:
    """Normalized price table."""
    return normalize_table(price_table)


@pytest.fixture
def split(normalization: NormalizationResult) -> Split:
    """Default 80/20 split."""
    return split_table(normalization.table, "Close", seed=123)


@pytest.fixture
def evaluation(normalization: NormalizationResult, split: Split) -> EvaluationResult:
    """Evaluation of a model fitted on the training rows."""
    model = fit_ols(split.train, "Close", ["Feature1", "Feature2"])
    return evaluate_model(model, split.test, normalization.params)


class TestEvaluateModel:
    """Tests for evaluate_model."""

    def test_scores_test_rows_only(self, evaluation: EvaluationResult, split: Split) -> None:
        """Test that metrics and predictions cover exactly the test subset."""
        assert evaluation.metrics.n_samples == 200
        assert list(evaluation.predictions.index) == split.test_index

    def test_table_columns(self, evaluation: EvaluationResult) -> None:
        """Test the predictions table layout."""
        assert list(evaluation.predictions.columns) == [
            "Actual",
            "Predicted",
            "Residual",
            "Actual_normalized",
            "Predicted_normalized",
            "Residual_normalized",
        ]

    def test_actuals_in_original_units(
        self, evaluation: EvaluationResult, price_table: pd.DataFrame
    ) -> None:
        """Test that Actual recovers the raw target values."""
        table = evaluation.predictions
        np.testing.assert_allclose(
            table["Actual"].to_numpy(), price_table.loc[table.index, "Close"].to_numpy()
        )
        np.testing.assert_allclose(table["Residual"], table["Actual"] - table["Predicted"])

    def test_scale_relationship(
        self, evaluation: EvaluationResult, normalization: NormalizationResult
    ) -> None:
        """Test that original-unit errors are normalized errors times sd(target)."""
        sd = normalization.params["Close"].sd
        assert evaluation.original_metrics.rmse == pytest.approx(evaluation.metrics.rmse * sd)
        assert evaluation.original_metrics.mae == pytest.approx(evaluation.metrics.mae * sd)
        assert evaluation.original_metrics.r2 == pytest.approx(evaluation.metrics.r2)

    def test_rmse_at_least_mae(self, evaluation: EvaluationResult) -> None:
        """Test RMSE >= MAE on both scales."""
        assert evaluation.metrics.rmse >= evaluation.metrics.mae
        assert evaluation.original_metrics.rmse >= evaluation.original_metrics.mae

    def test_good_fit(self, evaluation: EvaluationResult) -> None:
        """Test that the synthetic relationship is learned."""
        assert evaluation.metrics.r2 > 0.8
