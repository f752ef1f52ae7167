"""
Feature normalization with reusable parameters.
"""

from closefit.normalization.standardize import (
    ColumnScale,
    NormalizationParams,
    NormalizationResult,
    Normalizer,
    normalize_table,
)

__all__ = [
    "ColumnScale",
    "NormalizationParams",
    "NormalizationResult",
    "Normalizer",
    "normalize_table",
]
