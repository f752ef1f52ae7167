"""
Descriptive statistics for the cleaned table.
"""

import numpy as np
import pandas as pd

from closefit.schemas.output import DescriptiveStatsSchema
from closefit.utils.logging import get_logger

log = get_logger(__name__)

STATISTIC_COLUMNS = ["mean", "sd", "min", "max", "median", "q25", "q75", "missing"]


def describe_column(values: pd.Series) -> dict[str, float]:
    """
    Summary statistics for a single numeric column.

    Standard deviation uses the N-1 denominator; quartiles interpolate
    linearly between order statistics.
    """
    present = values.dropna()
    return {
        "mean": float(present.mean()),
        "sd": float(present.std(ddof=1)),
        "min": float(present.min()),
        "max": float(present.max()),
        "median": float(present.median()),
        "q25": float(np.percentile(present, 25)),
        "q75": float(np.percentile(present, 75)),
        "missing": int(values.isna().sum()),
    }


def describe_table(df: pd.DataFrame) -> pd.DataFrame:
    """
    Compute per-column descriptive statistics.

    Args:
        df: Cleaned table (non-numeric columns are ignored).

    Returns:
        DataFrame with one row per variable and columns
        variable, mean, sd, min, max, median, q25, q75, missing.
    """
    numeric = df.select_dtypes(include=[np.number])
    rows = [{"variable": str(col), **describe_column(numeric[col])} for col in numeric]
    stats = pd.DataFrame(rows, columns=["variable", *STATISTIC_COLUMNS])

    log.debug("Computed descriptive statistics", n_variables=len(stats))
    return DescriptiveStatsSchema.validate(stats)


def correlation_matrix(df: pd.DataFrame) -> pd.DataFrame | None:
    """
    Pearson correlation matrix of the numeric columns.

    Returns None for tables with two or fewer numeric columns, where a
    matrix adds nothing over the single pairwise correlation.
    """
    numeric = df.select_dtypes(include=[np.number])
    if numeric.shape[1] <= 2:
        return None
    return numeric.corr(method="pearson")
