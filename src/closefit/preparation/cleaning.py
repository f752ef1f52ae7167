"""
Row-level data cleaning.

Drops incomplete rows first, then exact duplicates, and flags
excessive data loss without aborting the run.
"""

from dataclasses import dataclass

import pandas as pd

from closefit.errors import EmptyDatasetError
from closefit.utils.logging import get_logger

log = get_logger(__name__)

DEFAULT_MIN_RETENTION_RATIO = 0.7


@dataclass(frozen=True)
class CleaningResult:
    """
    Outcome of the cleaning stage.

    Attributes:
        table: Cleaned table with a fresh RangeIndex.
        n_input: Rows before cleaning.
        n_missing_dropped: Rows removed for holding a missing value.
        n_duplicates_dropped: Rows removed as exact duplicates.
        min_retention_ratio: Threshold used for the loss warning.
    """

    table: pd.DataFrame
    n_input: int
    n_missing_dropped: int
    n_duplicates_dropped: int
    min_retention_ratio: float = DEFAULT_MIN_RETENTION_RATIO

    @property
    def n_output(self) -> int:
        """Rows after cleaning."""
        return len(self.table)

    @property
    def n_dropped(self) -> int:
        """Total rows removed."""
        return self.n_input - self.n_output

    @property
    def retention_ratio(self) -> float:
        """Share of input rows that survived cleaning."""
        return self.n_output / self.n_input if self.n_input else 0.0

    @property
    def excessive_loss(self) -> bool:
        """True when fewer than min_retention_ratio of the rows survived."""
        return self.n_output < self.n_input * self.min_retention_ratio


def clean_table(
    df: pd.DataFrame,
    *,
    min_retention_ratio: float = DEFAULT_MIN_RETENTION_RATIO,
) -> CleaningResult:
    """
    Remove rows with missing values, then exact duplicate rows.

    Args:
        df: Raw table.
        min_retention_ratio: Warn when fewer than this share of rows survive.

    Returns:
        CleaningResult with the cleaned table and row-count deltas.

    Raises:
        EmptyDatasetError: If the input is empty or nothing survives cleaning.
    """
    n_input = len(df)
    if n_input == 0:
        msg = "Cannot clean an empty table"
        raise EmptyDatasetError(msg)

    complete = df.dropna(how="any")
    n_missing_dropped = n_input - len(complete)

    deduplicated = complete.drop_duplicates(keep="first")
    n_duplicates_dropped = len(complete) - len(deduplicated)

    result = CleaningResult(
        table=deduplicated.reset_index(drop=True),
        n_input=n_input,
        n_missing_dropped=n_missing_dropped,
        n_duplicates_dropped=n_duplicates_dropped,
        min_retention_ratio=min_retention_ratio,
    )

    log.info(
        "Cleaned table",
        rows_before=n_input,
        rows_after=result.n_output,
        missing_dropped=n_missing_dropped,
        duplicates_dropped=n_duplicates_dropped,
    )

    if result.n_output == 0:
        msg = "No rows left after removing missing values and duplicates"
        raise EmptyDatasetError(msg)

    if result.excessive_loss:
        log.warning(
            "Excessive data loss during cleaning, check data quality",
            retention_ratio=f"{result.retention_ratio:.1%}",
            threshold=f"{min_retention_ratio:.0%}",
        )

    return result
