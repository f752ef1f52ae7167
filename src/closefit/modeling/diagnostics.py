"""
Residual diagnostic tests.

Both tests are informational. Any failure to compute a test is
recorded as a null result and never propagates to the caller.
"""

from dataclasses import dataclass

import numpy as np
import statsmodels.api as sm
from scipy import stats
from statsmodels.stats.diagnostic import het_breuschpagan

from closefit.utils.logging import get_logger

log = get_logger(__name__)

# scipy's Shapiro-Wilk p-value is only reliable in this range
SHAPIRO_MIN_N = 3
SHAPIRO_MAX_N = 5000


@dataclass(frozen=True)
class DiagnosticTest:
    """
    Outcome of one hypothesis test on the residuals.

    Attributes:
        name: Test name.
        statistic: Test statistic, None if the test could not be computed.
        p_value: p-value, None if the test could not be computed.
        df: Degrees of freedom, where applicable.
        error: Reason the test was not computed.
    """

    name: str
    statistic: float | None
    p_value: float | None
    df: float | None = None
    error: str | None = None

    @property
    def computed(self) -> bool:
        """Whether a statistic and p-value are available."""
        return self.p_value is not None

    def rejects(self, alpha: float) -> bool | None:
        """Whether the null hypothesis is rejected at level alpha (None if not computed)."""
        if self.p_value is None:
            return None
        return self.p_value < alpha

    def to_dict(self) -> dict[str, float | str | None]:
        """Convert to dictionary."""
        return {
            "name": self.name,
            "statistic": self.statistic,
            "p_value": self.p_value,
            "df": self.df,
            "error": self.error,
        }


@dataclass(frozen=True)
class ResidualDiagnostics:
    """Normality and heteroscedasticity tests for one fit."""

    normality: DiagnosticTest
    heteroscedasticity: DiagnosticTest


def _failed(name: str, reason: str) -> DiagnosticTest:
    log.warning("Diagnostic test not computed", test=name, reason=reason)
    return DiagnosticTest(name=name, statistic=None, p_value=None, error=reason)


def _finite_or_none(value: float) -> float | None:
    return float(value) if np.isfinite(value) else None


def shapiro_wilk(residuals: np.ndarray) -> DiagnosticTest:
    """
    Shapiro-Wilk normality test.

    Args:
        residuals: Model residuals.

    Returns:
        DiagnosticTest; null result outside 3 <= n <= 5000.
    """
    name = "Shapiro-Wilk normality"
    residuals = np.asarray(residuals, dtype=float).ravel()
    n = len(residuals)
    if not SHAPIRO_MIN_N <= n <= SHAPIRO_MAX_N:
        return _failed(
            name, f"sample size must be between {SHAPIRO_MIN_N} and {SHAPIRO_MAX_N}, got {n}"
        )
    try:
        statistic, p_value = stats.shapiro(residuals)
    except Exception as e:  # informational only
        return _failed(name, str(e))
    if not (np.isfinite(statistic) and np.isfinite(p_value)):
        return _failed(name, "non-finite test result")
    return DiagnosticTest(name=name, statistic=float(statistic), p_value=float(p_value))


def ncv_score_test(residuals: np.ndarray, fitted: np.ndarray) -> DiagnosticTest:
    """
    Non-constant variance score test against the fitted values.

    Regresses the scaled squared residuals on the fitted values
    (non-studentized Breusch-Pagan). Chi-squared with one degree of
    freedom under constant variance.

    Args:
        residuals: Model residuals.
        fitted: Fitted values of the model.

    Returns:
        DiagnosticTest; null result when not computable.
    """
    name = "Non-constant variance score"
    residuals = np.asarray(residuals, dtype=float).ravel()
    fitted = np.asarray(fitted, dtype=float).ravel()
    if len(residuals) < SHAPIRO_MIN_N:
        return _failed(name, f"at least {SHAPIRO_MIN_N} residuals required")
    if np.ptp(fitted) == 0:
        return _failed(name, "fitted values are constant")
    try:
        exog_het = sm.add_constant(fitted, has_constant="add")
        lm, lm_pvalue, _, _ = het_breuschpagan(residuals, exog_het, robust=False)
    except Exception as e:  # informational only
        return _failed(name, str(e))
    statistic = _finite_or_none(lm)
    p_value = _finite_or_none(lm_pvalue)
    if statistic is None or p_value is None:
        return _failed(name, "non-finite test result")
    return DiagnosticTest(name=name, statistic=statistic, p_value=p_value, df=1.0)


def run_diagnostics(residuals: np.ndarray, fitted: np.ndarray) -> ResidualDiagnostics:
    """
    Run both residual diagnostics.

    Args:
        residuals: Model residuals.
        fitted: Fitted values of the model.

    Returns:
        ResidualDiagnostics (never raises for numerical reasons).
    """
    diagnostics = ResidualDiagnostics(
        normality=shapiro_wilk(residuals),
        heteroscedasticity=ncv_score_test(residuals, fitted),
    )
    log.info(
        "Residual diagnostics",
        shapiro_p=diagnostics.normality.p_value,
        ncv_p=diagnostics.heteroscedasticity.p_value,
    )
    return diagnostics
