"""
Data ingestion layer.

Loaders read the raw input table and validate it at the boundary.
"""

from closefit.ingestion.table import TabularFileLoader, load_table, read_table

__all__ = ["TabularFileLoader", "load_table", "read_table"]
