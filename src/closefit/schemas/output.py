"""
Pandera schemas for pipeline output tables.
"""

import numpy as np
import pandas as pd
import pandera as pa
from pandera.typing import Series


class PredictionTableSchema(pa.DataFrameModel):
    """
    Schema for the held-out predictions table.

    Original-scale columns come first; normalized-scale columns
    mirror them for diagnostics.
    """

    Actual: Series[float] = pa.Field(description="Observed target (original units)")
    Predicted: Series[float] = pa.Field(description="Predicted target (original units)")
    Residual: Series[float] = pa.Field(description="Actual minus Predicted")
    Actual_normalized: Series[float] = pa.Field()
    Predicted_normalized: Series[float] = pa.Field()
    Residual_normalized: Series[float] = pa.Field()

    @pa.dataframe_check
    def residual_is_difference(cls, df: pd.DataFrame) -> bool:
        """Residual must equal Actual - Predicted."""
        return bool(
            np.allclose(df["Residual"], df["Actual"] - df["Predicted"], equal_nan=False)
        )

    class Config:
        """Schema configuration."""

        name = "PredictionTableSchema"
        strict = True
        coerce = True


class DescriptiveStatsSchema(pa.DataFrameModel):
    """
    Schema for the descriptive statistics table (one row per column).
    """

    variable: Series[str] = pa.Field(unique=True)
    mean: Series[float] = pa.Field()
    sd: Series[float] = pa.Field(ge=0, nullable=True)
    min: Series[float] = pa.Field()
    max: Series[float] = pa.Field()
    median: Series[float] = pa.Field()
    q25: Series[float] = pa.Field()
    q75: Series[float] = pa.Field()
    missing: Series[int] = pa.Field(ge=0)

    @pa.dataframe_check
    def ordered_quantiles(cls, df: pd.DataFrame) -> Series[bool]:
        """min <= q25 <= median <= q75 <= max for every variable."""
        return (
            (df["min"] <= df["q25"])
            & (df["q25"] <= df["median"])
            & (df["median"] <= df["q75"])
            & (df["q75"] <= df["max"])
        )

    class Config:
        """Schema configuration."""

        name = "DescriptiveStatsSchema"
        strict = True
        coerce = True
