"""Series math shared by all indicators.

Every function is pure and returns a list with the same length as its
input. ``None`` marks "no value": indices inside a warm-up window, or
windows that contain an undefined input. Values are never zero-filled.
"""

import math
from datetime import datetime, timedelta
from typing import List, NamedTuple, Optional, Sequence

Series = List[Optional[float]]


def _none(length: int) -> Series:
    return [None] * length


def _seed_end(values: Sequence[Optional[float]], period: int) -> Optional[int]:
    """Index closing the first run of ``period`` consecutive defined values."""
    run = 0
    for i, v in enumerate(values):
        run = run + 1 if v is not None else 0
        if run == period:
            return i
    return None


def _window(values: Sequence[Optional[float]], end: int, period: int) -> Optional[List[float]]:
    """Trailing window ending at ``end`` (inclusive), or None if incomplete."""
    start = end - period + 1
    if start < 0:
        return None
    window = values[start:end + 1]
    if any(v is None for v in window):
        return None
    return list(window)


def closes(data) -> List[float]:
    return [p.close for p in data]


def highs(data) -> List[float]:
    return [p.high for p in data]


def lows(data) -> List[float]:
    return [p.low for p in data]


def median_price(high_values: Sequence[float], low_values: Sequence[float]) -> List[float]:
    """(H + L) / 2 per bar."""
    return [(h + l) / 2.0 for h, l in zip(high_values, low_values)]


def sma(values: Sequence[Optional[float]], period: int) -> Series:
    """Simple moving average.

    Defined at index i once the ``period`` values ending at i are all
    defined; the first value is therefore at ``first_defined + period - 1``.

    Args:
        values: Input series (may have leading None)
        period: Window length

    Returns:
        SMA series
    """
    result = _none(len(values))
    if period < 1:
        return result
    for i in range(len(values)):
        window = _window(values, i, period)
        if window is not None:
            result[i] = sum(window) / period
    return result


def ema(values: Sequence[Optional[float]], period: int) -> Series:
    """Exponential moving average seeded with an SMA.

    Warm-up is counted from the input's own first defined index, so an
    EMA of a derived series (e.g. the MACD line) starts ``period - 1``
    bars after that series becomes defined.

    Formula: EMA = k * value + (1 - k) * EMA_prev, k = 2 / (period + 1)

    Args:
        values: Input series (may have leading None)
        period: EMA period

    Returns:
        EMA series
    """
    result = _none(len(values))
    seed_end = _seed_end(values, period) if period >= 1 else None
    if seed_end is None:
        return result

    k = 2.0 / (period + 1)
    current = sum(_window(values, seed_end, period)) / period
    result[seed_end] = current
    for i in range(seed_end + 1, len(values)):
        value = values[i]
        if value is None:
            continue
        current = k * value + (1 - k) * current
        result[i] = current
    return result


def wilder_smooth(values: Sequence[Optional[float]], period: int) -> Series:
    """Wilder smoothing (RMA).

    The first value is the simple mean of the first ``period`` defined
    inputs; subsequent values are ``(prev * (period - 1) + x) / period``.
    An undefined input after seeding yields None and leaves the state
    unchanged.

    Args:
        values: Input series (may have leading None)
        period: Smoothing period

    Returns:
        Smoothed series
    """
    result = _none(len(values))
    seed_end = _seed_end(values, period) if period >= 1 else None
    if seed_end is None:
        return result

    current = sum(_window(values, seed_end, period)) / period
    result[seed_end] = current
    for i in range(seed_end + 1, len(values)):
        value = values[i]
        if value is None:
            continue
        current = (current * (period - 1) + value) / period
        result[i] = current
    return result


def population_stddev(values: Sequence[Optional[float]], period: int) -> Series:
    """Rolling standard deviation dividing by ``period`` (not period - 1)."""
    result = _none(len(values))
    if period < 1:
        return result
    for i in range(len(values)):
        window = _window(values, i, period)
        if window is None:
            continue
        mean = sum(window) / period
        variance = sum((v - mean) ** 2 for v in window) / period
        result[i] = math.sqrt(variance)
    return result


def true_range(
    high_values: Sequence[float],
    low_values: Sequence[float],
    close_values: Sequence[float],
) -> List[float]:
    """True range per bar.

    TR = max(H - L, |H - prev_C|, |L - prev_C|)

    The first bar has no previous close, so TR = H - L.
    """
    result = []
    for i in range(len(high_values)):
        hl_range = high_values[i] - low_values[i]
        if i == 0:
            result.append(hl_range)
            continue
        prev_close = close_values[i - 1]
        result.append(max(
            hl_range,
            abs(high_values[i] - prev_close),
            abs(low_values[i] - prev_close),
        ))
    return result


def atr(
    high_values: Sequence[float],
    low_values: Sequence[float],
    close_values: Sequence[float],
    period: int,
) -> Series:
    """Average true range, first defined at index ``period - 1``."""
    return wilder_smooth(true_range(high_values, low_values, close_values), period)


def highest(values: Sequence[Optional[float]], period: int) -> Series:
    """Highest value over a trailing window (plain scan)."""
    result = _none(len(values))
    if period < 1:
        return result
    for i in range(len(values)):
        window = _window(values, i, period)
        if window is not None:
            result[i] = max(window)
    return result


def lowest(values: Sequence[Optional[float]], period: int) -> Series:
    """Lowest value over a trailing window (plain scan)."""
    result = _none(len(values))
    if period < 1:
        return result
    for i in range(len(values)):
        window = _window(values, i, period)
        if window is not None:
            result[i] = min(window)
    return result


def midpoint(
    high_values: Sequence[float],
    low_values: Sequence[float],
    period: int,
) -> Series:
    """(highest high + lowest low) / 2 over a trailing window."""
    hh = highest(high_values, period)
    ll = lowest(low_values, period)
    return [
        (h + l) / 2.0 if h is not None and l is not None else None
        for h, l in zip(hh, ll)
    ]


def subtract(a: Sequence[Optional[float]], b: Sequence[Optional[float]]) -> Series:
    """Element-wise a - b, None where either side is None."""
    return [x - y if x is not None and y is not None else None for x, y in zip(a, b)]


def shift(values: Sequence[Optional[float]], offset: int) -> Series:
    """Shift a series by ``offset`` bars (positive = forward in time).

    Length is preserved; vacated slots are None.
    """
    n = len(values)
    result = _none(n)
    for i in range(n):
        source = i - offset
        if 0 <= source < n:
            result[i] = values[source]
    return result


def is_pivot_high(values: Sequence[float], index: int, lookback: int) -> bool:
    """True if no other point within ``lookback`` bars on either side exceeds it."""
    start = max(0, index - lookback)
    end = min(len(values), index + lookback + 1)
    current = values[index]
    for j in range(start, end):
        if j != index and values[j] > current:
            return False
    return True


def is_pivot_low(values: Sequence[float], index: int, lookback: int) -> bool:
    """True if no other point within ``lookback`` bars on either side is lower."""
    start = max(0, index - lookback)
    end = min(len(values), index + lookback + 1)
    current = values[index]
    for j in range(start, end):
        if j != index and values[j] < current:
            return False
    return True


class Pivot(NamedTuple):
    index: int
    price: float


def pivot_highs(values: Sequence[float], lookback: int) -> List[Pivot]:
    """Pivot highs with a full window on both sides (``lookback <= i < n - lookback``)."""
    return [
        Pivot(i, values[i])
        for i in range(lookback, len(values) - lookback)
        if is_pivot_high(values, i, lookback)
    ]


def pivot_lows(values: Sequence[float], lookback: int) -> List[Pivot]:
    """Pivot lows with a full window on both sides (``lookback <= i < n - lookback``)."""
    return [
        Pivot(i, values[i])
        for i in range(lookback, len(values) - lookback)
        if is_pivot_low(values, i, lookback)
    ]


def line_value(start: Pivot, end: Pivot, index: float) -> float:
    """Value at ``index`` of the straight line through two pivots."""
    slope = (end.price - start.price) / (end.index - start.index)
    return start.price + slope * (index - start.index)


def future_timestamps(times: Sequence[datetime], count: int) -> List[datetime]:
    """Synthesize ``count`` timestamps after the last one.

    Spacing is the final interval of the series. With fewer than two
    timestamps the spacing is unknown and nothing is produced.
    """
    if count <= 0 or len(times) < 2:
        return []
    step: timedelta = times[-1] - times[-2]
    return [times[-1] + step * (i + 1) for i in range(count)]
