"""OHLC input loading and validation."""

from chartengine.data.ohlc import (
    validate_ohlc,
    parse_timestamp,
    ohlc_from_records,
    ohlc_from_dataframe,
    load_ohlc_csv,
)

__all__ = [
    "validate_ohlc",
    "parse_timestamp",
    "ohlc_from_records",
    "ohlc_from_dataframe",
    "load_ohlc_csv",
]
