"""
Z-score standardization with retained parameters.

Every numeric column is mapped to (value - mean) / sd. The per-column
(mean, sd) pairs are kept in an immutable NormalizationParams object so
new records can be transformed, and predictions mapped back to the
original scale, without recomputing statistics.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

import numpy as np
import pandas as pd

from closefit.errors import SchemaError, ZeroVarianceError
from closefit.utils.logging import get_logger

log = get_logger(__name__)

# Tolerance for the post-normalization mean/sd check
CHECK_TOLERANCE = 1e-8


@dataclass(frozen=True)
class ColumnScale:
    """Mean and standard deviation of one column."""

    mean: float
    sd: float


@dataclass(frozen=True)
class NormalizationParams:
    """
    Per-column standardization parameters.

    Stored as parallel tuples so instances are hashable and picklable.
    """

    columns: tuple[str, ...]
    means: tuple[float, ...]
    sds: tuple[float, ...]

    def __post_init__(self) -> None:
        if not len(self.columns) == len(self.means) == len(self.sds):
            msg = "columns, means and sds must have equal length"
            raise ValueError(msg)

    def __getitem__(self, column: str) -> ColumnScale:
        try:
            i = self.columns.index(column)
        except ValueError:
            msg = f"No normalization parameters for column {column!r}"
            raise KeyError(msg) from None
        return ColumnScale(mean=self.means[i], sd=self.sds[i])

    def __contains__(self, column: object) -> bool:
        return column in self.columns

    def __iter__(self) -> Iterator[str]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def to_dict(self) -> dict[str, dict[str, float]]:
        """Convert to {column: {"mean": ..., "sd": ...}}."""
        return {
            col: {"mean": mean, "sd": sd}
            for col, mean, sd in zip(self.columns, self.means, self.sds)
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, float]]) -> "NormalizationParams":
        """Build from the to_dict() representation."""
        columns = tuple(data)
        return cls(
            columns=columns,
            means=tuple(float(data[c]["mean"]) for c in columns),
            sds=tuple(float(data[c]["sd"]) for c in columns),
        )


class Normalizer:
    """
    Standardize numeric columns to zero mean and unit variance.

    Follows the fit/transform pattern: fit() learns the parameters,
    transform() and inverse_transform() apply them.
    """

    def __init__(self) -> None:
        self.params_: NormalizationParams | None = None

    @property
    def is_fitted(self) -> bool:
        """Whether parameters have been learned."""
        return self.params_ is not None

    def _check_is_fitted(self) -> NormalizationParams:
        if self.params_ is None:
            raise RuntimeError(
                f"{self.__class__.__name__} has not been fitted. "
                "Call fit() before transform()."
            )
        return self.params_

    def fit(self, df: pd.DataFrame) -> "Normalizer":
        """
        Learn mean and sample standard deviation per numeric column.

        Args:
            df: Cleaned table.

        Returns:
            self (for method chaining)

        Raises:
            ZeroVarianceError: If any column is constant.
        """
        numeric = df.select_dtypes(include=[np.number])
        means = numeric.mean()
        sds = numeric.std(ddof=1)

        constant = [str(col) for col in numeric.columns if not sds[col] > 0]
        if constant:
            raise ZeroVarianceError(constant)

        self.params_ = NormalizationParams(
            columns=tuple(str(c) for c in numeric.columns),
            means=tuple(float(means[c]) for c in numeric.columns),
            sds=tuple(float(sds[c]) for c in numeric.columns),
        )
        return self

    @classmethod
    def from_params(cls, params: NormalizationParams) -> "Normalizer":
        """Create a fitted normalizer from stored parameters."""
        normalizer = cls()
        normalizer.params_ = params
        return normalizer

    def _scales(self, columns: pd.Index) -> tuple[np.ndarray, np.ndarray]:
        params = self._check_is_fitted()
        unknown = [col for col in columns if col not in params]
        if unknown:
            msg = f"No normalization parameters for columns: {unknown}"
            raise SchemaError(msg)
        means = np.array([params[col].mean for col in columns])
        sds = np.array([params[col].sd for col in columns])
        return means, sds

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Apply (value - mean) / sd to every column of df."""
        means, sds = self._scales(df.columns)
        return (df.astype(float) - means) / sds

    def inverse_transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """Apply value * sd + mean to every column of df."""
        means, sds = self._scales(df.columns)
        return df.astype(float) * sds + means

    def transform_values(self, values: np.ndarray, column: str) -> np.ndarray:
        """Standardize raw values of a single column."""
        scale = self._check_is_fitted()[column]
        return (np.asarray(values, dtype=float) - scale.mean) / scale.sd

    def inverse_transform_values(self, values: np.ndarray, column: str) -> np.ndarray:
        """Map standardized values of a single column back to original units."""
        scale = self._check_is_fitted()[column]
        return np.asarray(values, dtype=float) * scale.sd + scale.mean


@dataclass(frozen=True)
class NormalizationResult:
    """
    Normalized table plus the parameters and a sanity check.

    Attributes:
        table: Standardized table.
        params: Parameters used for the transformation.
        check_means: Column means after normalization (expected ~0).
        check_sds: Column standard deviations after normalization (expected ~1).
    """

    table: pd.DataFrame
    params: NormalizationParams
    check_means: dict[str, float]
    check_sds: dict[str, float]

    @property
    def check_passed(self) -> bool:
        """True when every column has mean ~0 and sd ~1."""
        return all(
            abs(self.check_means[c]) < CHECK_TOLERANCE
            and abs(self.check_sds[c] - 1.0) < CHECK_TOLERANCE
            for c in self.params
        )


def normalize_table(df: pd.DataFrame) -> NormalizationResult:
    """
    Standardize every numeric column of the cleaned table.

    Args:
        df: Cleaned, numeric table.

    Returns:
        NormalizationResult with normalized table and parameters.

    Raises:
        ZeroVarianceError: If any column has zero standard deviation.
    """
    normalizer = Normalizer().fit(df)
    params = normalizer._check_is_fitted()
    table = normalizer.transform(df[list(params.columns)])

    check_means = {c: float(v) for c, v in table.mean().items()}
    check_sds = {c: float(v) for c, v in table.std(ddof=1).items()}
    result = NormalizationResult(
        table=table,
        params=params,
        check_means=check_means,
        check_sds=check_sds,
    )

    log.info(
        "Normalized table",
        n_columns=len(params),
        max_abs_mean=f"{max(abs(v) for v in check_means.values()):.2e}",
        max_sd_deviation=f"{max(abs(v - 1.0) for v in check_sds.values()):.2e}",
    )
    if not result.check_passed:
        log.warning("Normalization check outside tolerance", tolerance=CHECK_TOLERANCE)

    return result
