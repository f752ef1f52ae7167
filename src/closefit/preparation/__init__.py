"""
Data preparation: cleaning and descriptive statistics.
"""

from closefit.preparation.cleaning import CleaningResult, clean_table
from closefit.preparation.statistics import (
    correlation_matrix,
    describe_column,
    describe_table,
)

__all__ = [
    "CleaningResult",
    "clean_table",
    "correlation_matrix",
    "describe_column",
    "describe_table",
]
