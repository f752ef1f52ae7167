"""
Schema definitions using Pandera for data validation.

All data contracts are defined here to ensure explicit,
validated data structures at the pipeline boundaries.
"""

from closefit.schemas.output import DescriptiveStatsSchema, PredictionTableSchema
from closefit.schemas.table import build_table_schema

__all__ = [
    "DescriptiveStatsSchema",
    "PredictionTableSchema",
    "build_table_schema",
]
