"""
OHLC input helpers
Build and validate OHLCPoint sequences from records, DataFrames and CSV files
"""
import math
import numbers
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Sequence, Union

import pandas as pd

from chartengine.core.exceptions import DataValidationError
from chartengine.indicators.base import OHLCPoint
from chartengine.logger import logger

TIME_COLUMNS = ("time", "timestamp", "datetime", "date")
PRICE_COLUMNS = ("open", "high", "low", "close")


def validate_ohlc(points: Sequence[OHLCPoint]) -> Sequence[OHLCPoint]:
    """
    Check that a sequence is usable as indicator input
    
    Args:
        points: Candidate OHLC sequence
        
    Returns:
        The same sequence, unchanged
        
    Raises:
        DataValidationError: If timestamps are not strictly ascending,
            a price is not finite, or high < low
    """
    previous = None
    for i, point in enumerate(points):
        for column in PRICE_COLUMNS:
            value = getattr(point, column)
            if not math.isfinite(value):
                raise DataValidationError(f"Point {i}: {column} is not finite ({value})")
        if point.high < point.low:
            raise DataValidationError(f"Point {i}: high {point.high} is below low {point.low}")
        if previous is not None and point.time <= previous:
            raise DataValidationError(
                f"Point {i}: timestamp {point.time} does not follow {previous}"
            )
        previous = point.time
    return points


def parse_timestamp(value: Any) -> datetime:
    """
    Parse a datetime, ISO-8601 string (any fraction length, "Z" suffix) or epoch seconds
    
    Raises:
        ValueError: If the value is not a timestamp
    """
    if value is None or value is pd.NaT:
        raise ValueError("missing timestamp")
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, datetime):
        return value
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        # Epoch seconds
        return datetime.fromtimestamp(value)
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"not a timestamp: {value!r}") from e
    if pd.isna(ts):
        raise ValueError(f"not a timestamp: {value!r}")
    return ts.to_pydatetime()


def ohlc_from_records(records: Iterable[Mapping[str, Any]]) -> List[OHLCPoint]:
    """
    Build OHLC points from mappings
    
    Each record needs a time key (time/timestamp/datetime/date, datetime,
    ISO string or epoch seconds) and open/high/low/close.
    
    Raises:
        DataValidationError: On missing keys, bad values or bad ordering
    """
    points = []
    for i, record in enumerate(records):
        lowered = {str(k).lower(): v for k, v in record.items()}
        time_key = next((k for k in TIME_COLUMNS if k in lowered), None)
        if time_key is None:
            raise DataValidationError(f"Record {i}: no time field (expected one of {TIME_COLUMNS})")
        try:
            points.append(OHLCPoint(
                time=parse_timestamp(lowered[time_key]),
                open=float(lowered["open"]),
                high=float(lowered["high"]),
                low=float(lowered["low"]),
                close=float(lowered["close"]),
            ))
        except KeyError as e:
            raise DataValidationError(f"Record {i}: missing field {e}") from e
        except (TypeError, ValueError) as e:
            raise DataValidationError(f"Record {i}: {e}") from e
    validate_ohlc(points)
    return points


def ohlc_from_dataframe(df: pd.DataFrame) -> List[OHLCPoint]:
    """
    Build OHLC points from a pandas DataFrame
    
    Column names are matched case-insensitively. When no time column is
    present a DatetimeIndex is used instead.
    
    Raises:
        DataValidationError: On missing columns, unparseable cells or bad ordering
    """
    frame = df.rename(columns={c: str(c).lower() for c in df.columns})
    missing = [c for c in PRICE_COLUMNS if c not in frame.columns]
    if missing:
        raise DataValidationError(f"Missing columns: {', '.join(missing)}")
    
    time_column = next((c for c in TIME_COLUMNS if c in frame.columns), None)
    if time_column is not None:
        times = list(frame[time_column])
    elif isinstance(frame.index, pd.DatetimeIndex):
        times = list(frame.index)
    else:
        raise DataValidationError(
            f"No time column (expected one of {TIME_COLUMNS}) and no DatetimeIndex"
        )

    points = []
    rows = zip(times, frame["open"], frame["high"], frame["low"], frame["close"])
    for i, (ts, o, h, l, c) in enumerate(rows):
        try:
            points.append(OHLCPoint(
                time=parse_timestamp(ts),
                open=float(o),
                high=float(h),
                low=float(l),
                close=float(c),
            ))
        except (TypeError, ValueError) as e:
            raise DataValidationError(f"Row {i}: {e}") from e
    validate_ohlc(points)
    return points


def load_ohlc_csv(file_path: Union[str, Path]) -> List[OHLCPoint]:
    """
    Load an OHLC CSV file
    
    Expected format (header required, extra columns ignored):
        time,open,high,low,close
        2024-01-15 09:30:00,180.50,181.20,180.10,180.90
    
    Raises:
        FileNotFoundError: If the file does not exist
        DataValidationError: On bad content
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"CSV file not found: {file_path}")
    
    try:
        df = pd.read_csv(path)
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise DataValidationError(f"Cannot read {path.name}: {e}") from e
    points = ohlc_from_dataframe(df)
    logger.info(f"Loaded {len(points)} bars from {path.name}")
    return points
