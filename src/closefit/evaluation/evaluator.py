"""
Held-out evaluation of a fitted model.

Scores the model on the test subset only and builds the
Actual/Predicted/Residual table in both standardized and original units.
"""

from dataclasses import dataclass

import pandas as pd

from closefit.evaluation.metrics import RegressionMetrics, compute_metrics
from closefit.modeling.ols import FittedModel
from closefit.normalization.standardize import NormalizationParams, Normalizer
from closefit.schemas.output import PredictionTableSchema
from closefit.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class EvaluationResult:
    """
    Test-set evaluation of one model.

    Attributes:
        metrics: R², RMSE and MAE on the standardized scale.
        original_metrics: The same metrics in the target's original units.
        predictions: Per-row Actual/Predicted/Residual table
            (PredictionTableSchema), indexed by test row label.
    """

    metrics: RegressionMetrics
    original_metrics: RegressionMetrics
    predictions: pd.DataFrame


def evaluate_model(
    model: FittedModel,
    test: pd.DataFrame,
    params: NormalizationParams,
) -> EvaluationResult:
    """
    Evaluate a fitted model on the held-out test subset.

    Args:
        model: Model fitted on the training subset.
        test: Standardized test subset (never the training rows).
        params: Normalization parameters for mapping back to original units.

    Returns:
        EvaluationResult with metrics and the residual table.
    """
    normalizer = Normalizer.from_params(params)

    actual = test[model.target].to_numpy(dtype=float)
    predicted = model.predict(test)

    actual_original = normalizer.inverse_transform_values(actual, model.target)
    predicted_original = normalizer.inverse_transform_values(predicted, model.target)

    table = pd.DataFrame(
        {
            "Actual": actual_original,
            "Predicted": predicted_original,
            "Residual": actual_original - predicted_original,
            "Actual_normalized": actual,
            "Predicted_normalized": predicted,
            "Residual_normalized": actual - predicted,
        },
        index=test.index,
    )
    table = PredictionTableSchema.validate(table)

    result = EvaluationResult(
        metrics=compute_metrics(actual, predicted),
        original_metrics=compute_metrics(actual_original, predicted_original),
        predictions=table,
    )

    log.info(
        "Evaluated on test set",
        n_test=len(test),
        r2=f"{result.metrics.r2:.4f}",
        rmse=f"{result.metrics.rmse:.4f}",
        mae=f"{result.metrics.mae:.4f}",
        rmse_original=f"{result.original_metrics.rmse:.4f}",
    )
    return result
