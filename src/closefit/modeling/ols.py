"""
Ordinary least squares fitting.

Fits target ~ 1 + features through a QR factorization, refusing
rank-deficient design matrices, and collects the usual summary
statistics plus residual diagnostics.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import scipy.linalg
import statsmodels.api as sm

from closefit.errors import InsufficientDataError, RankDeficiencyError, SchemaError
from closefit.modeling.diagnostics import ResidualDiagnostics, run_diagnostics
from closefit.utils.logging import get_logger

log = get_logger(__name__)

INTERCEPT = "(Intercept)"
COEFFICIENT_COLUMNS = ["estimate", "std_error", "t_value", "p_value"]


@dataclass(frozen=True)
class FittedModel:
    """
    Fitted linear model with summary statistics.

    Attributes:
        target: Target column name.
        features: Feature names in design-matrix order (intercept excluded).
        coefficient_table: Estimate, std. error, t value and p value per
            term, indexed by term name with the intercept first.
        residuals: Training residuals.
        fitted_values: Training fitted values.
        r2: Coefficient of determination on the training data.
        adj_r2: Adjusted R².
        f_statistic: Overall F statistic.
        f_pvalue: p-value of the F statistic.
        residual_std_error: sqrt(SSR / df_residual).
        df_model: Model degrees of freedom (number of features).
        df_residual: Residual degrees of freedom.
        n_obs: Number of training rows.
        diagnostics: Residual normality and heteroscedasticity tests.
    """

    target: str
    features: tuple[str, ...]
    coefficient_table: pd.DataFrame
    residuals: np.ndarray
    fitted_values: np.ndarray
    r2: float
    adj_r2: float
    f_statistic: float
    f_pvalue: float
    residual_std_error: float
    df_model: int
    df_residual: int
    n_obs: int
    diagnostics: ResidualDiagnostics = field(repr=False)

    @property
    def coefficients(self) -> dict[str, float]:
        """Mapping term -> estimate, intercept included."""
        return {
            str(term): float(value)
            for term, value in self.coefficient_table["estimate"].items()
        }

    @property
    def intercept(self) -> float:
        """Intercept estimate."""
        return float(self.coefficient_table.at[INTERCEPT, "estimate"])

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """
        Linear combination of coefficients and features.

        Args:
            X: Frame holding at least the model features (same scale as training).

        Returns:
            Predictions as a 1-D array.
        """
        missing = [f for f in self.features if f not in X.columns]
        if missing:
            msg = f"Missing feature columns for prediction: {missing}"
            raise SchemaError(msg)
        beta = self.coefficient_table["estimate"]
        values = X[list(self.features)].to_numpy(dtype=float)
        return beta[INTERCEPT] + values @ beta[list(self.features)].to_numpy()

    def to_dict(self) -> dict[str, object]:
        """Summary as a JSON-friendly dictionary."""
        return {
            "target": self.target,
            "features": list(self.features),
            "coefficients": {
                str(term): {col: float(row[col]) for col in COEFFICIENT_COLUMNS}
                for term, row in self.coefficient_table.iterrows()
            },
            "r2": self.r2,
            "adj_r2": self.adj_r2,
            "f_statistic": self.f_statistic,
            "f_pvalue": self.f_pvalue,
            "residual_std_error": self.residual_std_error,
            "df_model": self.df_model,
            "df_residual": self.df_residual,
            "n_obs": self.n_obs,
            "diagnostics": {
                "normality": self.diagnostics.normality.to_dict(),
                "heteroscedasticity": self.diagnostics.heteroscedasticity.to_dict(),
            },
        }


def resolve_feature_columns(
    columns: Sequence[str],
    target_column: str,
    configured: Sequence[str] | None = None,
) -> list[str]:
    """
    Determine the predictor columns once, before fitting.

    Args:
        columns: Columns available in the table.
        target_column: Target column (never a feature).
        configured: Explicit feature list; None means all other columns.

    Returns:
        Validated feature list in a stable order.

    Raises:
        SchemaError: If the target or a configured feature is missing,
            or no feature remains.
    """
    available = [str(c) for c in columns]
    if target_column not in available:
        msg = f"Target column {target_column!r} not found. Available: {available}"
        raise SchemaError(msg)

    if configured is None:
        features = [c for c in available if c != target_column]
    else:
        missing = [c for c in configured if c not in available]
        if missing:
            msg = f"Configured feature columns not found: {missing}"
            raise SchemaError(msg)
        if target_column in configured:
            msg = f"Target column {target_column!r} cannot also be a feature"
            raise SchemaError(msg)
        features = list(configured)

    if not features:
        msg = "No feature columns available besides the target"
        raise SchemaError(msg)

    log.debug("Resolved feature columns", features=features)
    return features


def check_full_rank(design: np.ndarray, names: Sequence[str]) -> None:
    """
    Verify that a design matrix has full column rank.

    Uses a column-pivoted QR factorization; columns pivoted past the
    numerical rank are reported as the dependent ones.

    Raises:
        RankDeficiencyError: If the matrix is rank deficient.
    """
    r, pivot = scipy.linalg.qr(design, mode="r", pivoting=True)
    diag = np.abs(np.diag(r))
    if diag.size == 0 or diag[0] == 0:
        raise RankDeficiencyError(0, design.shape[1], list(names))
    tol = diag[0] * max(design.shape) * np.finfo(float).eps
    rank = int(np.sum(diag > tol))
    if rank < design.shape[1]:
        dependent = [names[i] for i in pivot[rank:]]
        raise RankDeficiencyError(rank, design.shape[1], dependent)


def fit_ols(
    train: pd.DataFrame,
    target_column: str,
    feature_columns: Sequence[str],
) -> FittedModel:
    """
    Fit target ~ 1 + features by ordinary least squares.

    Args:
        train: Training table.
        target_column: Column to predict.
        feature_columns: Predictor columns.

    Returns:
        FittedModel with coefficients, fit statistics and diagnostics.

    Raises:
        SchemaError: If columns are missing.
        InsufficientDataError: If there are not more rows than coefficients.
        RankDeficiencyError: If the features are perfectly collinear.
    """
    features = list(feature_columns)
    missing = [c for c in [*features, target_column] if c not in train.columns]
    if missing:
        msg = f"Training table lacks columns: {missing}"
        raise SchemaError(msg)

    terms = [INTERCEPT, *features]
    n_obs, n_terms = len(train), len(terms)
    if n_obs <= n_terms:
        msg = (
            f"Need more rows than coefficients to fit: {n_obs} rows, "
            f"{n_terms} coefficients"
        )
        raise InsufficientDataError(msg)

    X = train[features].astype(float)
    X.insert(0, INTERCEPT, 1.0)
    y = train[target_column].astype(float)

    check_full_rank(X.to_numpy(), terms)

    log.info("Fitting OLS", target=target_column, n_obs=n_obs, n_features=len(features))
    results = sm.OLS(y, X).fit(method="qr")

    coefficient_table = pd.DataFrame(
        {
            "estimate": results.params,
            "std_error": results.bse,
            "t_value": results.tvalues,
            "p_value": results.pvalues,
        },
        index=pd.Index(terms, name="term"),
    )
    residuals = np.asarray(results.resid, dtype=float)
    fitted_values = np.asarray(results.fittedvalues, dtype=float)

    model = FittedModel(
        target=target_column,
        features=tuple(features),
        coefficient_table=coefficient_table,
        residuals=residuals,
        fitted_values=fitted_values,
        r2=float(results.rsquared),
        adj_r2=float(results.rsquared_adj),
        f_statistic=float(results.fvalue),
        f_pvalue=float(results.f_pvalue),
        residual_std_error=float(np.sqrt(results.scale)),
        df_model=int(results.df_model),
        df_residual=int(results.df_resid),
        n_obs=n_obs,
        diagnostics=run_diagnostics(residuals, fitted_values),
    )

    log.info(
        "OLS fit complete",
        r2=f"{model.r2:.4f}",
        adj_r2=f"{model.adj_r2:.4f}",
        f_pvalue=f"{model.f_pvalue:.3g}",
        residual_std_error=f"{model.residual_std_error:.4f}",
    )
    return model
