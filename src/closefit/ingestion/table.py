"""
Tabular file loader.

Reads CSV, Excel or Parquet files and narrows them to numeric model columns.
"""

import zipfile
from pathlib import Path

import pandas as pd

from closefit.errors import EmptyDatasetError, InputNotFoundError, UnreadableInputError
from closefit.ingestion.base import DataLoader
from closefit.schemas.table import build_table_schema
from closefit.utils.logging import get_logger

log = get_logger(__name__)

EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls"}
CSV_SUFFIXES = {".csv", ".txt"}
PARQUET_SUFFIXES = {".parquet", ".pq"}


def _read(path: Path, sheet_name: str | int) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix in CSV_SUFFIXES:
        return pd.read_csv(path)
    if suffix in EXCEL_SUFFIXES:
        return pd.read_excel(path, sheet_name=sheet_name)
    if suffix in PARQUET_SUFFIXES:
        return pd.read_parquet(path)
    msg = (
        f"Unsupported input format {suffix!r} for {path}. "
        f"Expected one of {sorted(CSV_SUFFIXES | EXCEL_SUFFIXES | PARQUET_SUFFIXES)}"
    )
    raise UnreadableInputError(msg)


def read_table(path: Path, *, sheet_name: str | int = 0) -> pd.DataFrame:
    """
    Read a CSV, Excel or Parquet file without schema validation.

    Raises:
        InputNotFoundError: If the file does not exist.
        UnreadableInputError: If the file cannot be parsed.
        EmptyDatasetError: If the file holds no rows.
    """
    path = Path(path)
    if not path.exists():
        msg = f"Input file not found: {path}"
        raise InputNotFoundError(msg)
    if not path.is_file():
        msg = f"Input path is not a file: {path}"
        raise UnreadableInputError(msg)

    try:
        df = _read(path, sheet_name)
    except UnreadableInputError:
        raise
    except pd.errors.EmptyDataError as e:
        msg = f"Input file is empty: {path}"
        raise EmptyDatasetError(msg) from e
    except (
        ValueError,
        OSError,
        ImportError,
        zipfile.BadZipFile,
        pd.errors.ParserError,
    ) as e:
        msg = f"Could not read {path}: {e}"
        raise UnreadableInputError(msg) from e

    if df.empty:
        msg = f"Input file contains no rows: {path}"
        raise EmptyDatasetError(msg)
    return df


class TabularFileLoader(DataLoader):
    """
    Loader for a single tabular file holding the modeling data.

    load() returns every column of the file so that row cleaning sees
    the full records (dates included). select_model_columns() then
    narrows a table to the numeric columns the model may use.
    """

    def __init__(
        self,
        path: Path,
        target_column: str,
        feature_columns: list[str] | None = None,
        *,
        sheet_name: str | int = 0,
    ) -> None:
        """
        Initialize loader.

        Args:
            path: Path to the input file.
            target_column: Column the model predicts.
            feature_columns: Explicit predictor columns, if configured.
            sheet_name: Sheet to read for Excel input.
        """
        super().__init__(build_table_schema(target_column, feature_columns or []))
        self.path = Path(path)
        self.target_column = target_column
        self.feature_columns = feature_columns
        self.sheet_name = sheet_name

    def _load_raw(self) -> pd.DataFrame:
        return read_table(self.path, sheet_name=self.sheet_name)

    def select_model_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Keep numeric columns plus any explicitly required column.

        Boolean columns count as non-numeric unless required; required
        ones are coerced to float by the schema during load().
        """
        required = {self.target_column, *(self.feature_columns or [])}
        keep = [
            col
            for col in df.columns
            if col in required or _is_model_numeric(df[col])
        ]
        dropped = [col for col in df.columns if col not in keep]
        if dropped:
            log.info("Dropped non-numeric columns", columns=dropped)
        if self.feature_columns is not None:
            # Explicit feature list: only those and the target take part
            keep = [col for col in keep if col in required]
        return df[keep]


def _is_model_numeric(column: pd.Series) -> bool:
    types = pd.api.types
    return types.is_numeric_dtype(column) and not types.is_bool_dtype(column)


def load_table(
    path: Path,
    target_column: str,
    feature_columns: list[str] | None = None,
    *,
    sheet_name: str | int = 0,
) -> pd.DataFrame:
    """
    Load, validate and narrow the input table to its model columns.

    Rows are not cleaned here; use read_table() or
    TabularFileLoader.load() when cleaning must see every column.

    Args:
        path: Path to the input file.
        target_column: Column the model predicts.
        feature_columns: Explicit predictor columns, if configured.
        sheet_name: Sheet to read for Excel input.

    Returns:
        Numeric DataFrame with a fresh RangeIndex.

    Raises:
        InputNotFoundError: If the file does not exist.
        UnreadableInputError: If the file cannot be parsed.
        EmptyDatasetError: If the file holds no rows.
        SchemaError: If required columns are missing or not numeric.
    """
    loader = TabularFileLoader(
        path, target_column, feature_columns, sheet_name=sheet_name
    )
    return loader.select_model_columns(loader.load()).reset_index(drop=True)
