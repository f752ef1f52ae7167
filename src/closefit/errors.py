"""
Error taxonomy for the regression pipeline.

Structural failures derive from ClosefitError and abort the run.
Each error also derives from the closest builtin so callers that
only know the standard library still catch it.
"""

from collections.abc import Sequence


class ClosefitError(Exception):
    """Base class for all pipeline failures."""


class InputNotFoundError(ClosefitError, FileNotFoundError):
    """Input file does not exist."""


class UnreadableInputError(ClosefitError, ValueError):
    """Input file exists but cannot be parsed as a table."""


class EmptyDatasetError(ClosefitError, ValueError):
    """Table has no rows (or no usable columns)."""


class SchemaError(ClosefitError, ValueError):
    """Target or feature columns are missing or not numeric."""


class ZeroVarianceError(ClosefitError, ZeroDivisionError):
    """A column has zero standard deviation and cannot be standardized."""

    def __init__(self, columns: Sequence[str]) -> None:
        self.columns = list(columns)
        super().__init__(
            f"Cannot normalize constant column(s) with zero standard deviation: "
            f"{self.columns}"
        )


class InsufficientDataError(ClosefitError, ValueError):
    """Not enough rows for the requested split or fit."""


class RankDeficiencyError(ClosefitError, ValueError):
    """Design matrix is not of full column rank."""

    def __init__(self, rank: int, n_columns: int, columns: Sequence[str]) -> None:
        self.rank = rank
        self.n_columns = n_columns
        self.columns = list(columns)
        super().__init__(
            f"Design matrix is rank deficient (rank {rank} < {n_columns} columns); "
            f"features are perfectly collinear: {self.columns}"
        )


class MissingFeatureError(ClosefitError, KeyError):
    """Prediction record lacks a feature required by the model."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class UnknownColumnError(ClosefitError, KeyError):
    """Prediction record holds columns the model does not use."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""
