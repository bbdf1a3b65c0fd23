"""Table loading for the command-line interface.

Supports CSV files, single Parquet files and Parquet dataset directories.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Optional, List, Union

import pandas as pd

logger = logging.getLogger(__name__)

_PYARROW_AVAILABLE: Optional[bool] = None


class DataFormat(str, Enum):
    """Supported data formats."""

    CSV = "csv"
    PARQUET = "parquet"
    PARQUET_DATASET = "parquet_dataset"

    @classmethod
    def from_path(cls, path: Path) -> DataFormat:
        """
        Infer format from path.

        Raises
        ------
        ValueError
            If format cannot be inferred
        """
        path = Path(path)

        if path.is_dir():
            return cls.PARQUET_DATASET

        suffix = path.suffix.lower()
        if suffix == ".csv":
            return cls.CSV
        elif suffix == ".parquet":
            return cls.PARQUET
        else:
            raise ValueError(
                f"Cannot infer data format from path: {path}. "
                f"Expected .csv, .parquet file, or directory for parquet dataset."
            )


def validate_parquet_available() -> None:
    """
    Check if PyArrow is available for Parquet operations.

    Raises
    ------
    ImportError
        If PyArrow is not installed
    """
    global _PYARROW_AVAILABLE

    if _PYARROW_AVAILABLE is None:
        try:
            import pyarrow  # noqa: F401

            _PYARROW_AVAILABLE = True
        except ImportError:
            _PYARROW_AVAILABLE = False

    if not _PYARROW_AVAILABLE:
        raise ImportError(
            "PyArrow is required for Parquet support but is not installed.\n"
            "Install with: pip install statgate[parquet] or pip install pyarrow"
        )


def load_table(
    path: Union[Path, str],
    columns: Optional[List[str]] = None,
) -> pd.DataFrame:
    """
    Load a table from file (CSV, Parquet, or Parquet dataset directory).

    Parameters
    ----------
    path : Path or str
        Path to data file or directory
    columns : List[str], optional
        Subset of columns to load

    Returns
    -------
    pd.DataFrame
        Loaded data

    Raises
    ------
    FileNotFoundError
        If the path does not exist
    ValueError
        If the format cannot be inferred or a dataset directory is empty
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Data path not found: {path}")

    fmt = DataFormat.from_path(path)
    logger.info("Loading table from %s (format: %s)", path, fmt.value)

    if fmt == DataFormat.CSV:
        kwargs = {"usecols": columns} if columns is not None else {}
        df = pd.read_csv(path, **kwargs)
    elif fmt == DataFormat.PARQUET:
        validate_parquet_available()
        df = pd.read_parquet(path, columns=columns)
    else:
        validate_parquet_available()
        df = _load_parquet_dataset(path, columns=columns)

    logger.info("Loaded %d rows, %d columns", len(df), len(df.columns))
    return df


def _load_parquet_dataset(path: Path, columns: Optional[List[str]] = None) -> pd.DataFrame:
    """Load a directory of parquet files (optionally hive-partitioned)."""
    import pyarrow.dataset as ds

    parquet_files = [
        f for f in path.glob("**/*.parquet") if not f.name.startswith((".", "_"))
    ]
    if not parquet_files:
        raise ValueError(
            f"No parquet files found in {path}. Ensure the directory contains .parquet files."
        )

    logger.info("Found %d parquet files in dataset directory", len(parquet_files))
    dataset = ds.dataset(path, format="parquet")
    return dataset.to_table(columns=columns).to_pandas()
