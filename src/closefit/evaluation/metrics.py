"""
Evaluation metrics for regression models.

Provides standardized metrics computation on held-out data.
"""

from dataclasses import dataclass

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

from closefit.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class RegressionMetrics:
    """
    Standard regression metrics.

    Attributes:
        r2: R² (1 - SS_res / SS_tot)
        rmse: Root Mean Squared Error
        mae: Mean Absolute Error
        n_samples: Number of samples
    """

    r2: float
    rmse: float
    mae: float
    n_samples: int

    def to_dict(self) -> dict[str, float]:
        """Convert to dictionary."""
        return {
            "r2": self.r2,
            "rmse": self.rmse,
            "mae": self.mae,
            "n_samples": self.n_samples,
        }

    def __str__(self) -> str:
        """String representation."""
        return f"R²={self.r2:.4f}, RMSE={self.rmse:.4f}, MAE={self.mae:.4f}"


def compute_metrics(
    y_true: np.ndarray,
    y_pred: np.ndarray,
) -> RegressionMetrics:
    """
    Compute regression metrics.

    Args:
        y_true: True values.
        y_pred: Predicted values.

    Returns:
        RegressionMetrics object.

    Raises:
        ValueError: If the inputs are empty or differ in length.
    """
    y_true = np.asarray(y_true, dtype=float).ravel()
    y_pred = np.asarray(y_pred, dtype=float).ravel()

    if len(y_true) == 0 or len(y_true) != len(y_pred):
        msg = (
            "Metrics need non-empty arrays of equal length, "
            f"got {len(y_true)} and {len(y_pred)}"
        )
        raise ValueError(msg)

    # r2_score is undefined for a single sample
    r2 = float(r2_score(y_true, y_pred)) if len(y_true) > 1 else float("nan")

    metrics = RegressionMetrics(
        r2=r2,
        rmse=float(np.sqrt(mean_squared_error(y_true, y_pred))),
        mae=float(mean_absolute_error(y_true, y_pred)),
        n_samples=len(y_true),
    )

    log.debug("Computed metrics", **metrics.to_dict())
    return metrics


def compute_residual_stats(residuals: np.ndarray) -> dict[str, float]:
    """
    Five-number summary of residuals.

    Args:
        residuals: Residual values.

    Returns:
        Dictionary with min, q25, median, q75 and max.
    """
    residuals = np.asarray(residuals, dtype=float)
    q25, median, q75 = np.percentile(residuals, [25, 50, 75])

    return {
        "min": float(np.min(residuals)),
        "q25": float(q25),
        "median": float(median),
        "q75": float(q75),
        "max": float(np.max(residuals)),
    }
