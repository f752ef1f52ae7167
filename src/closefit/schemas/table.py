"""
Pandera schema for the numeric input table.

The column set is only known once the configuration is resolved, so
the schema is built per run instead of declared as a DataFrameModel.
"""

from collections.abc import Sequence

import pandera as pa


def build_table_schema(
    target_column: str,
    feature_columns: Sequence[str] = (),
) -> pa.DataFrameSchema:
    """
    Build the schema for a raw input table.

    Required columns are coerced to float. Missing values are allowed
    here; they are removed by the cleaning stage.

    Args:
        target_column: Column the model predicts.
        feature_columns: Predictor columns that must be present.

    Returns:
        DataFrameSchema accepting extra columns.
    """
    columns = {
        name: pa.Column(float, nullable=True, coerce=True, required=True)
        for name in [*feature_columns, target_column]
    }
    return pa.DataFrameSchema(
        columns=columns,
        name="InputTableSchema",
        strict=False,
        coerce=True,
    )
