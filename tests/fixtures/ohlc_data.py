"""Synthetic OHLC Data Generation

Utilities for generating deterministic candle sequences for testing.
"""
import math
import pytest
import pandas as pd
from datetime import datetime, timedelta
from typing import List, Sequence, Tuple

from chartengine.indicators.base import OHLCPoint


BASE_TIME = datetime(2025, 1, 2, 9, 30)


def make_points(
    closes: Sequence[float],
    spread: float = 0.5,
    start: datetime = BASE_TIME,
    interval_minutes: int = 1,
) -> List[OHLCPoint]:
    """Build candles from closes.

    Open is the previous close (the first candle opens at its close);
    high/low sit ``spread`` outside the open/close body.
    """
    points = []
    previous = closes[0] if closes else 0.0
    for i, close in enumerate(closes):
        open_price = previous
        points.append(OHLCPoint(
            time=start + timedelta(minutes=i * interval_minutes),
            open=open_price,
            high=max(open_price, close) + spread,
            low=min(open_price, close) - spread,
            close=close,
        ))
        previous = close
    return points


def make_bars(rows: Sequence[Tuple[float, float, float]], start: datetime = BASE_TIME) -> List[OHLCPoint]:
    """Build candles from explicit (low, high, close) rows; open = close."""
    return [
        OHLCPoint(
            time=start + timedelta(minutes=i),
            open=close,
            high=high,
            low=low,
            close=close,
        )
        for i, (low, high, close) in enumerate(rows)
    ]


def uptrend_closes(count: int = 200, start: float = 100.0, step: float = 0.5) -> List[float]:
    return [start + i * step for i in range(count)]


def oscillating_closes(
    count: int = 200,
    base: float = 100.0,
    amplitude: float = 5.0,
    period: int = 20,
    drift: float = 0.0,
) -> List[float]:
    return [
        base + drift * i + amplitude * math.sin(2 * math.pi * i / period)
        for i in range(count)
    ]


@pytest.fixture
def uptrend_points() -> List[OHLCPoint]:
    """200 bars rising 0.5 per bar from 100."""
    return make_points(uptrend_closes())


@pytest.fixture
def oscillating_points() -> List[OHLCPoint]:
    """200 bars of a 20-bar sine wave around 100."""
    return make_points(oscillating_closes())


@pytest.fixture
def flat_points() -> List[OHLCPoint]:
    """50 bars at a constant 100 (high - low = 1)."""
    return make_points([100.0] * 50)


@pytest.fixture
def ohlc_csv(tmp_path):
    """CSV file with 60 uptrend bars written via pandas."""
    points = make_points(uptrend_closes(60))
    df = pd.DataFrame({
        "time": [p.time.isoformat() for p in points],
        "open": [p.open for p in points],
        "high": [p.high for p in points],
        "low": [p.low for p in points],
        "close": [p.close for p in points],
    })
    path = tmp_path / "bars.csv"
    df.to_csv(path, index=False)
    return path
