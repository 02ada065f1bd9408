"""Data format helpers for Parquet and JSON tariff I/O."""

import json

import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq

from arbitrage_engine.core.constants import COL_TIMESTAMP, COL_UNIT_PRICE


def read_parquet_timeseries(path: str) -> pd.DataFrame:
    """Read timeseries from Parquet file.

    Args:
        path: Path to Parquet file

    Returns:
        DataFrame with DatetimeIndex
    """
    df = pd.read_parquet(path)

    # Ensure timestamp column exists
    if COL_TIMESTAMP not in df.columns:
        raise ValueError("Timeseries must have 'timestamp' column")

    # Convert to datetime and set as index
    df[COL_TIMESTAMP] = pd.to_datetime(df[COL_TIMESTAMP])
    df = df.set_index(COL_TIMESTAMP)
    df.index.name = COL_TIMESTAMP

    return df


def write_parquet_timeseries(df: pd.DataFrame, path: str) -> None:
    """Write timeseries to Parquet file.

    Args:
        df: DataFrame with DatetimeIndex
        path: Output path
    """
    # Ensure index has the right name before resetting
    df_copy = df.copy()
    df_copy.index.name = COL_TIMESTAMP

    # Reset index to save timestamp as column
    df_out = df_copy.reset_index()

    table = pa.Table.from_pandas(df_out, preserve_index=False)
    pq.write_table(table, path, compression="snappy")


def read_tariffs_json(path: str) -> pd.DataFrame:
    """Read a public day-ahead price dump into a tariff DataFrame.

    Two layouts are understood:
    - a list of ``{"Timestamp": ..., "TariffUsage": ...}`` records
    - ``{"Prices": [{"readingDate": ..., "price": ...}, ...]}``

    Args:
        path: Path to JSON file

    Returns:
        DataFrame with DatetimeIndex and a unit_price column, sorted by time
    """
    with open(path) as f:
        payload = json.load(f)

    if isinstance(payload, dict) and "Prices" in payload:
        records = [(p["readingDate"], p["price"]) for p in payload["Prices"]]
    elif isinstance(payload, list):
        records = [(p["Timestamp"], p["TariffUsage"]) for p in payload]
    else:
        raise ValueError(f"Unrecognised tariff JSON layout in {path}")

    df = pd.DataFrame(records, columns=[COL_TIMESTAMP, COL_UNIT_PRICE])
    df[COL_TIMESTAMP] = pd.to_datetime(df[COL_TIMESTAMP], utc=True)
    df[COL_UNIT_PRICE] = df[COL_UNIT_PRICE].astype(float)
    return df.set_index(COL_TIMESTAMP).sort_index()
