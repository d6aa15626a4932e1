"""Volatility indicators and price-range constructs."""

import math
from typing import List, NamedTuple, Optional, Sequence

from chartengine.core.enums import IndicatorType, SeriesRole

from .base import OHLCPoint, OutputSeries, ResolvedParameters, color, number
from .registry import indicator
from .utils import Series, closes, highest, highs, lowest, lows, population_stddev, sma

GREEN = "rgb(34, 197, 94)"
RED = "rgb(239, 68, 68)"
YELLOW = "rgb(234, 179, 8)"


@indicator(
    "bollinger",
    "Bollinger Bands",
    IndicatorType.VOLATILITY,
    parameters=[
        number("period", 20, 1, 100, label="Period"),
        number("std_dev", 2.0, 0.1, 5.0, 0.1, label="Standard Deviation"),
        color("middle_color", "rgb(59, 130, 246)", label="Middle Band Color"),
        color("band_color", "rgb(147, 51, 234)", label="Outer Bands Color"),
        number("band_opacity", 0.1, 0.0, 1.0, 0.05, label="Band Fill Opacity"),
    ],
    description="SMA with population standard deviation envelopes",
)
def calculate_bollinger(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate Bollinger Bands.

    Middle = SMA(close, period)
    Upper/Lower = Middle ± std_dev * σ, where σ divides by ``period``
    over the same trailing window.
    """
    period = params["period"]
    k = params["std_dev"]
    close_values = closes(data)
    middle = sma(close_values, period)
    sigma = population_stddev(close_values, period)

    upper: Series = []
    lower: Series = []
    for m, s in zip(middle, sigma):
        if m is None or s is None:
            upper.append(None)
            lower.append(None)
        else:
            upper.append(m + k * s)
            lower.append(m - k * s)

    band_style = {"color": params["band_color"], "width": 1}
    return [
        OutputSeries(f"BB Middle ({period})", middle,
                     style={"color": params["middle_color"], "width": 1}),
        OutputSeries("BB Upper", upper, role=SeriesRole.BAND, style=band_style),
        OutputSeries("BB Lower", lower, role=SeriesRole.BAND,
                     style={**band_style, "fill": "tonexty", "opacity": params["band_opacity"]}),
    ]


@indicator(
    "donchian",
    "Donchian Channel",
    IndicatorType.VOLATILITY,
    parameters=[
        number("period", 20, 1, 200, label="Period"),
        color("upper_color", GREEN, label="Upper Band Color"),
        color("middle_color", YELLOW, label="Middle Band Color"),
        color("lower_color", RED, label="Lower Band Color"),
        number("fill_opacity", 0.1, 0.0, 1.0, 0.05, label="Fill Opacity"),
    ],
    description="Highest high / lowest low channel",
)
def calculate_donchian(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    period = params["period"]
    upper = highest(highs(data), period)
    lower = lowest(lows(data), period)
    middle = [
        (u + l) / 2.0 if u is not None and l is not None else None
        for u, l in zip(upper, lower)
    ]
    return [
        OutputSeries(f"Donchian Upper ({period})", upper, role=SeriesRole.BAND,
                     style={"color": params["upper_color"], "width": 1}),
        OutputSeries("Donchian Middle", middle,
                     style={"color": params["middle_color"], "width": 1, "dash": "dash"}),
        OutputSeries("Donchian Lower", lower, role=SeriesRole.BAND,
                     style={"color": params["lower_color"], "width": 1,
                            "fill": "tonexty", "opacity": params["fill_opacity"]}),
    ]


class RenkoResult(NamedTuple):
    top: Series
    bottom: Series
    # Bricks formed at each bar; positive = up, negative = down
    bricks: List[int]


def renko_levels(close_values: Sequence[float], block_size: float) -> RenkoResult:
    """Reconstruct Renko brick levels from closes.

    The first close is the initial top with bottom = top - block_size.
    A move to at least top + block_size (or at most bottom - block_size)
    shifts both levels by whole blocks; anything smaller leaves them in
    place.

    Args:
        close_values: Closing prices
        block_size: Brick height in price units

    Returns:
        RenkoResult with per-bar top/bottom levels and brick counts
    """
    n = len(close_values)
    if n == 0:
        return RenkoResult([], [], [])

    top = close_values[0]
    bottom = top - block_size
    tops: Series = [top]
    bottoms: Series = [bottom]
    bricks = [0]

    for price in close_values[1:]:
        formed = 0
        if price >= top + block_size:
            formed = math.floor((price - top) / block_size)
        elif price <= bottom - block_size:
            formed = -math.floor((bottom - price) / block_size)
        top += formed * block_size
        bottom += formed * block_size
        tops.append(top)
        bottoms.append(bottom)
        bricks.append(formed)

    return RenkoResult(tops, bottoms, bricks)


@indicator(
    "renko",
    "Renko",
    IndicatorType.TREND,
    parameters=[
        number("block_size", 0.5, 0.1, 10.0, 0.1, label="Block Size"),
        color("up_color", "rgba(34, 197, 94, 0.2)", label="Up Color"),
        color("down_color", "rgba(239, 68, 68, 0.2)", label="Down Color"),
        number("line_width", 2, 1, 5, label="Line Width"),
    ],
    description="Fixed-size price bricks overlaid on the candles",
)
def calculate_renko(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate Renko levels and brick events.

    Brick markers are defined only at bars where a brick formed; their
    value is the new top for up bricks and the new bottom for down bricks.
    """
    result = renko_levels(closes(data), params["block_size"])
    brick_marks: Series = []
    brick_text: List[Optional[str]] = []
    for top, bottom, formed in zip(result.top, result.bottom, result.bricks):
        if formed > 0:
            brick_marks.append(top)
            brick_text.append(f"+{formed}")
        elif formed < 0:
            brick_marks.append(bottom)
            brick_text.append(str(formed))
        else:
            brick_marks.append(None)
            brick_text.append(None)

    width = params["line_width"]
    return [
        OutputSeries("Renko Top", result.top, role=SeriesRole.BAND,
                     style={"color": params["up_color"], "width": width, "shape": "hv"}),
        OutputSeries("Renko Bottom", result.bottom, role=SeriesRole.BAND,
                     style={"color": params["down_color"], "width": width, "shape": "hv",
                            "fill": "tonexty"}),
        OutputSeries("Renko Bricks", brick_marks, role=SeriesRole.MARKER, text=brick_text,
                     style={"up_color": params["up_color"], "down_color": params["down_color"]}),
    ]
