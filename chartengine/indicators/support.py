"""Support/resistance indicators - horizontal price levels."""

import math
from typing import List, NamedTuple, Optional, Sequence

from chartengine.core.enums import IndicatorType, SeriesRole

from .base import OHLCPoint, OutputSeries, Projection, ResolvedParameters, boolean, color, number
from .registry import indicator
from .utils import Series, future_timestamps

FIBONACCI_LEVELS = (0.0, 0.236, 0.382, 0.5, 0.618, 0.786, 1.0)

# Relative distance within which a high/low counts as touching a level
TOUCH_TOLERANCE = 0.001
PROJECTION_BARS = 20


class PriceLevel(NamedTuple):
    price: float
    strength: float
    is_support: bool


def find_price_levels(
    data: Sequence[OHLCPoint],
    num_bins: int,
    min_strength: float,
    max_levels: int,
    lookback: int,
) -> List[PriceLevel]:
    """Find horizontal levels from a histogram of highs and lows.

    Highs and lows are bucketed into ``num_bins`` equal bins over the data
    range. A bin is a level when its count is a strict local maximum and
    count / max_count >= min_strength. The level price is the bin's lower
    edge. A level is support when recent lows touch it more often than
    recent highs.

    Args:
        data: OHLC sequence
        num_bins: Histogram resolution
        min_strength: Minimum relative bin count
        max_levels: Maximum levels returned (strongest first)
        lookback: Recent bars used to classify support vs resistance

    Returns:
        Levels sorted by strength, descending
    """
    prices = [price for p in data for price in (p.high, p.low)]
    if not prices:
        return []
    min_price, max_price = min(prices), max(prices)
    if max_price == min_price:
        return []

    bin_size = (max_price - min_price) / num_bins
    counts = [0] * num_bins
    for price in prices:
        # The maximum price belongs to the last bin
        index = min(int(math.floor((price - min_price) / bin_size)), num_bins - 1)
        counts[index] += 1

    max_count = max(counts)
    recent = data[max(0, len(data) - lookback):]
    levels = []
    for i in range(1, num_bins - 1):
        count = counts[i]
        if count <= counts[i - 1] or count <= counts[i + 1]:
            continue
        strength = count / max_count
        if strength < min_strength:
            continue
        price = min_price + i * bin_size
        touches_low = 0
        touches_high = 0
        if price != 0:
            touches_low = sum(1 for p in recent if abs(p.low - price) / abs(price) < TOUCH_TOLERANCE)
            touches_high = sum(1 for p in recent if abs(p.high - price) / abs(price) < TOUCH_TOLERANCE)
        levels.append(PriceLevel(price, strength, touches_low > touches_high))

    levels.sort(key=lambda level: level.strength, reverse=True)
    return levels[:max_levels]


@indicator(
    "support_resistance",
    "Support & Resistance",
    IndicatorType.SUPPORT_RESISTANCE,
    parameters=[
        number("num_bins", 100, 10, 500, label="Price Bins"),
        number("min_strength", 0.05, 0.01, 1.0, 0.01, label="Minimum Strength"),
        number("max_levels", 6, 1, 20, label="Maximum Levels"),
        number("lookback", 20, 5, 200, label="Classification Lookback"),
        color("support_color", "rgba(59, 130, 246, 0.8)", label="Support Color"),
        color("resistance_color", "rgba(236, 72, 153, 0.8)", label="Resistance Color"),
    ],
    description="Price-histogram levels classified by recent touches",
)
def calculate_support_resistance(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    levels = find_price_levels(
        data, params["num_bins"], params["min_strength"], params["max_levels"], params["lookback"]
    )
    future_times = tuple(future_timestamps([p.time for p in data], PROJECTION_BARS))

    series = []
    for level in levels:
        kind = "Support" if level.is_support else "Resistance"
        text: List[Optional[str]] = [None] * len(data)
        text[-1] = f"{level.price:.2f}"
        projection = None
        if future_times:
            projection = Projection(future_times, (level.price,) * len(future_times))
        series.append(OutputSeries(
            f"{kind} {level.price:.2f}",
            [level.price] * len(data),
            text=text,
            projection=projection,
            style={
                "color": params["support_color"] if level.is_support else params["resistance_color"],
                "width": 1,
                "strength": level.strength,
            },
        ))
    return series


class FibonacciLevels(NamedTuple):
    high: float
    low: float
    high_index: int
    low_index: int
    # (ratio, price) pairs, price = high - (high - low) * ratio
    levels: List[tuple]


def fibonacci_levels(data: Sequence[OHLCPoint], lookback: int) -> Optional[FibonacciLevels]:
    """Retracement levels between the extremes of the last ``lookback`` bars."""
    if not data:
        return None
    start = max(0, len(data) - lookback)
    high_index = max(range(start, len(data)), key=lambda i: data[i].high)
    low_index = min(range(start, len(data)), key=lambda i: data[i].low)
    high = data[high_index].high
    low = data[low_index].low
    diff = high - low
    return FibonacciLevels(
        high, low, high_index, low_index,
        [(ratio, high - diff * ratio) for ratio in FIBONACCI_LEVELS],
    )


@indicator(
    "fibonacci",
    "Fibonacci Retracement",
    IndicatorType.SUPPORT_RESISTANCE,
    parameters=[
        number("lookback", 100, 10, 500, 10, label="Lookback Period"),
        color("line_color", "rgb(234, 179, 8)", label="Line Color"),
        number("line_opacity", 0.5, 0.1, 1.0, 0.1, label="Line Opacity"),
        boolean("show_labels", True, label="Show Labels"),
    ],
    description="Retracement ratios between the lookback high and low",
)
def calculate_fibonacci(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate Fibonacci retracement levels.

    Levels span the whole chart; an extra marker series pins the swing
    high and low that the levels are measured from.
    """
    fib = fibonacci_levels(data, params["lookback"])
    if fib is None:
        return []

    n = len(data)
    style = {"color": params["line_color"], "width": 1, "opacity": params["line_opacity"]}
    series = []
    for ratio, price in fib.levels:
        label = f"{ratio * 100:.1f}%"
        text: Optional[List[Optional[str]]] = None
        if params["show_labels"]:
            text = [None] * n
            text[-1] = f"{label} ({price:.2f})"
        series.append(OutputSeries(f"Fib {label}", [price] * n, text=text,
                                   style={**style, "dash": "dash"}))

    anchors: Series = [None] * n
    anchors[fib.high_index] = fib.high
    anchors[fib.low_index] = fib.low
    series.append(OutputSeries("Fib Range", anchors, role=SeriesRole.MARKER, style=style))
    return series
