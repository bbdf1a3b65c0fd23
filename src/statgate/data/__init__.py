"""
Table loading for statgate.

Supports:
- CSV files (*.csv)
- Single Parquet files (*.parquet)
- Parquet dataset directories
"""

from statgate.data.loaders import DataFormat, load_table, validate_parquet_available

__all__ = ["DataFormat", "load_table", "validate_parquet_available"]
