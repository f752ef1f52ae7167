"""
Base class for data ingestion.

Loaders read a raw source and validate it against a Pandera schema
at the system boundary.
"""

from abc import ABC, abstractmethod

import pandas as pd
import pandera as pa

from closefit.errors import SchemaError
from closefit.utils.logging import get_logger

log = get_logger(__name__)


class DataLoader(ABC):
    """
    Abstract base class for data loaders.

    Subclasses implement _load_raw(); load() adds logging and
    schema validation.
    """

    def __init__(self, schema: pa.DataFrameSchema | None = None) -> None:
        """
        Initialize data loader.

        Args:
            schema: Pandera schema for validation (optional).
        """
        self.schema = schema

    @abstractmethod
    def _load_raw(self) -> pd.DataFrame:
        """Load raw data from source. Implemented by subclasses."""
        ...

    def load(self, *, validate: bool = True) -> pd.DataFrame:
        """
        Load and optionally validate data.

        Args:
            validate: Whether to validate against schema.

        Returns:
            Loaded (and optionally validated) DataFrame.

        Raises:
            SchemaError: If validation fails.
        """
        log.info("Loading data", loader=self.__class__.__name__)

        df = self._load_raw()
        log.info("Loaded raw data", rows=len(df), columns=list(df.columns))

        if validate and self.schema is not None:
            df = self._validate(df)
            log.info("Schema validation passed", schema=self.schema.name)

        return df

    def _validate(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Validate DataFrame against schema.

        Args:
            df: DataFrame to validate.

        Returns:
            Validated (coerced) DataFrame.
        """
        try:
            return self.schema.validate(df, lazy=True)
        except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
            msg = f"Input table does not match schema {self.schema.name}: {e}"
            raise SchemaError(msg) from e
