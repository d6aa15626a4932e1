"""Trend indicators - calculated from OHLC data."""

from typing import List, NamedTuple, Optional, Sequence

from chartengine.core.enums import IndicatorType, SeriesRole

from .base import (
    OHLCPoint,
    OutputSeries,
    Projection,
    ResolvedParameters,
    color,
    number,
)
from .registry import indicator
from .utils import (
    Series,
    atr,
    closes,
    ema,
    future_timestamps,
    highs,
    lows,
    median_price,
    midpoint,
    shift,
    sma,
)

GREEN = "rgb(34, 197, 94)"
RED = "rgb(239, 68, 68)"
BLUE = "rgb(59, 130, 246)"
PURPLE = "rgb(147, 51, 234)"
PINK = "rgb(236, 72, 153)"


@indicator(
    "sma",
    "Simple Moving Average",
    IndicatorType.TREND,
    parameters=[
        number("period", 14, 1, 200, label="Period"),
        color("color", "rgba(249, 115, 22, 1)", label="Line Color"),
    ],
    description="Arithmetic mean of the last N closes",
)
def calculate_sma(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate Simple Moving Average.

    Formula: SUM(close[i] for i in last N) / N

    Args:
        data: OHLC sequence
        params: period, color

    Returns:
        Single line series
    """
    period = params["period"]
    return [
        OutputSeries(
            label=f"SMA ({period})",
            values=sma(closes(data), period),
            style={"color": params["color"], "width": 2},
        )
    ]


@indicator(
    "ema",
    "Exponential Moving Average",
    IndicatorType.TREND,
    parameters=[
        number("period", 14, 1, 200, label="Period"),
        color("color", "rgba(16, 185, 129, 1)", label="Line Color"),
    ],
    description="SMA-seeded exponential average of closes",
)
def calculate_ema(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate Exponential Moving Average.

    Formula: EMA = α * Price + (1 - α) * EMA_prev
    where α = 2 / (period + 1), seeded with SMA(period)
    """
    period = params["period"]
    return [
        OutputSeries(
            label=f"EMA ({period})",
            values=ema(closes(data), period),
            style={"color": params["color"], "width": 2},
        )
    ]


@indicator(
    "sma_crossover",
    "SMA Crossover",
    IndicatorType.TREND,
    parameters=[
        number("fast_period", 20, 1, 200, label="Fast Period"),
        number("slow_period", 50, 1, 400, label="Slow Period"),
        color("fast_color", BLUE, label="Fast SMA Color"),
        color("slow_color", PURPLE, label="Slow SMA Color"),
        color("bullish_color", BLUE, label="Bullish Cross Color"),
        color("bearish_color", PINK, label="Bearish Cross Color"),
    ],
    description="Fast/slow SMA pair with crossover markers",
)
def calculate_sma_crossover(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate fast and slow SMAs and mark the bars where they cross.

    Bullish: fast[i-1] <= slow[i-1] and fast[i] > slow[i]
    Bearish: fast[i-1] >= slow[i-1] and fast[i] < slow[i]
    """
    fast_period = params["fast_period"]
    slow_period = params["slow_period"]
    close_values = closes(data)
    fast = sma(close_values, fast_period)
    slow = sma(close_values, slow_period)

    bullish: Series = [None] * len(data)
    bearish: Series = [None] * len(data)
    for i in range(1, len(data)):
        prev_fast, prev_slow = fast[i - 1], slow[i - 1]
        cur_fast, cur_slow = fast[i], slow[i]
        if None in (prev_fast, prev_slow, cur_fast, cur_slow):
            continue
        if prev_fast <= prev_slow and cur_fast > cur_slow:
            bullish[i] = cur_fast
        elif prev_fast >= prev_slow and cur_fast < cur_slow:
            bearish[i] = cur_fast

    return [
        OutputSeries(f"Fast SMA ({fast_period})", fast,
                     style={"color": params["fast_color"], "width": 1.5}),
        OutputSeries(f"Slow SMA ({slow_period})", slow,
                     style={"color": params["slow_color"], "width": 1.5}),
        OutputSeries("Bullish Cross", bullish, role=SeriesRole.MARKER,
                     style={"color": params["bullish_color"], "symbol": "triangle-up", "size": 12}),
        OutputSeries("Bearish Cross", bearish, role=SeriesRole.MARKER,
                     style={"color": params["bearish_color"], "symbol": "triangle-down", "size": 12}),
    ]


class SARResult(NamedTuple):
    sar: Series
    # True = long (SAR below price), False = short, None = undefined
    is_long: List[Optional[bool]]


def parabolic_sar(
    high_values: Sequence[float],
    low_values: Sequence[float],
    close_values: Sequence[float],
    initial_af: float,
    max_af: float,
    af_increment: float,
) -> SARResult:
    """Wilder's Parabolic SAR in a single pass.

    Bar 0 is undefined. Bar 1 seeds the trend: long if close[1] > close[0],
    SAR at the opposite extreme of bars 0-1 and EP at the favourable one.
    From bar 2 the SAR accelerates toward EP, is clamped outside the two
    previous bars, and flips when the current bar penetrates it.

    Args:
        high_values: Highs
        low_values: Lows
        close_values: Closes
        initial_af: Starting (and post-flip) acceleration factor
        max_af: Acceleration factor cap
        af_increment: Step added on each new extreme point

    Returns:
        SARResult with SAR value and direction per bar
    """
    n = len(close_values)
    sar_values: Series = [None] * n
    direction: List[Optional[bool]] = [None] * n
    if n < 2:
        return SARResult(sar_values, direction)

    is_long = close_values[1] > close_values[0]
    if is_long:
        sar = min(low_values[0], low_values[1])
        ep = max(high_values[0], high_values[1])
    else:
        sar = max(high_values[0], high_values[1])
        ep = min(low_values[0], low_values[1])
    af = initial_af
    sar_values[1] = sar
    direction[1] = is_long

    for i in range(2, n):
        sar = sar + af * (ep - sar)

        if is_long:
            sar = min(sar, low_values[i - 1], low_values[i - 2])
            if low_values[i] < sar:
                is_long = False
                sar = ep
                ep = low_values[i]
                af = initial_af
            elif high_values[i] > ep:
                ep = high_values[i]
                af = min(af + af_increment, max_af)
        else:
            sar = max(sar, high_values[i - 1], high_values[i - 2])
            if high_values[i] > sar:
                is_long = True
                sar = ep
                ep = high_values[i]
                af = initial_af
            elif low_values[i] < ep:
                ep = low_values[i]
                af = min(af + af_increment, max_af)

        sar_values[i] = sar
        direction[i] = is_long

    return SARResult(sar_values, direction)


@indicator(
    "parabolic_sar",
    "Parabolic SAR",
    IndicatorType.TREND,
    parameters=[
        number("initial_af", 0.02, 0.01, 0.1, 0.01, label="Initial AF"),
        number("max_af", 0.2, 0.1, 0.5, 0.01, label="Maximum AF"),
        number("af_increment", 0.02, 0.01, 0.1, 0.01, label="AF Increment"),
        color("up_color", GREEN, label="Uptrend Color"),
        color("down_color", RED, label="Downtrend Color"),
    ],
    description="Stop-and-reverse points trailing the trend",
)
def calculate_parabolic_sar(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate Parabolic SAR as separate up/down marker series."""
    result = parabolic_sar(
        highs(data), lows(data), closes(data),
        params["initial_af"], params["max_af"], params["af_increment"],
    )
    up = [s if d is True else None for s, d in zip(result.sar, result.is_long)]
    down = [s if d is False else None for s, d in zip(result.sar, result.is_long)]
    return [
        OutputSeries("SAR Up", up, role=SeriesRole.MARKER,
                     style={"color": params["up_color"], "symbol": "circle", "size": 4}),
        OutputSeries("SAR Down", down, role=SeriesRole.MARKER,
                     style={"color": params["down_color"], "symbol": "circle", "size": 4}),
    ]


class SupertrendResult(NamedTuple):
    final_upper: Series
    final_lower: Series
    line: Series
    # True = up trend, False = down trend, None = warm-up
    is_up: List[Optional[bool]]


def supertrend(
    high_values: Sequence[float],
    low_values: Sequence[float],
    close_values: Sequence[float],
    period: int,
    multiplier: float,
) -> SupertrendResult:
    """Supertrend final bands and trend line.

    Basic bands are hl2 ± multiplier * ATR. Final bands only tighten:
    the upper band takes the new basic value if it is lower, or if the
    previous close broke above the previous final upper band; the lower
    band mirrors this. The trend flips when the close crosses the band
    on the opposite side.

    Args:
        high_values: Highs
        low_values: Lows
        close_values: Closes
        period: ATR period
        multiplier: ATR multiplier

    Returns:
        SupertrendResult, first defined at index period - 1
    """
    n = len(close_values)
    atr_values = atr(high_values, low_values, close_values, period)
    hl2 = median_price(high_values, low_values)

    final_upper: Series = [None] * n
    final_lower: Series = [None] * n
    line: Series = [None] * n
    is_up: List[Optional[bool]] = [None] * n

    for i in range(n):
        if atr_values[i] is None:
            continue
        basic_upper = hl2[i] + multiplier * atr_values[i]
        basic_lower = hl2[i] - multiplier * atr_values[i]

        prev_upper = final_upper[i - 1] if i > 0 else None
        if prev_upper is None:
            # First defined bar
            final_upper[i] = basic_upper
            final_lower[i] = basic_lower
            trend_up = close_values[i] > (basic_upper + basic_lower) / 2.0
        else:
            prev_lower = final_lower[i - 1]
            prev_close = close_values[i - 1]

            if basic_upper < prev_upper or prev_close > prev_upper:
                final_upper[i] = basic_upper
            else:
                final_upper[i] = prev_upper

            if basic_lower > prev_lower or prev_close < prev_lower:
                final_lower[i] = basic_lower
            else:
                final_lower[i] = prev_lower

            trend_up = is_up[i - 1]
            if trend_up and close_values[i] < final_lower[i]:
                trend_up = False
            elif not trend_up and close_values[i] > final_upper[i]:
                trend_up = True

        is_up[i] = trend_up
        line[i] = final_lower[i] if trend_up else final_upper[i]

    return SupertrendResult(final_upper, final_lower, line, is_up)


@indicator(
    "supertrend",
    "Supertrend",
    IndicatorType.TREND,
    parameters=[
        number("period", 10, 1, 100, label="ATR Period"),
        number("multiplier", 3.0, 0.1, 10.0, 0.1, label="Multiplier"),
        color("up_color", GREEN, label="Uptrend Color"),
        color("down_color", RED, label="Downtrend Color"),
    ],
    description="ATR band that flips sides with the trend",
)
def calculate_supertrend(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    result = supertrend(highs(data), lows(data), closes(data), params["period"], params["multiplier"])
    up = [v if d is True else None for v, d in zip(result.line, result.is_up)]
    down = [v if d is False else None for v, d in zip(result.line, result.is_up)]
    return [
        OutputSeries("Supertrend Up", up, style={"color": params["up_color"], "width": 2}),
        OutputSeries("Supertrend Down", down, style={"color": params["down_color"], "width": 2}),
    ]


@indicator(
    "ichimoku",
    "Ichimoku Cloud",
    IndicatorType.TREND,
    parameters=[
        number("tenkan_period", 9, 1, 100, label="Tenkan-sen Period"),
        number("kijun_period", 26, 1, 100, label="Kijun-sen Period"),
        number("senkou_period", 52, 1, 100, label="Senkou Span B Period"),
        number("displacement", 26, 1, 100, label="Displacement"),
        color("tenkan_color", "rgba(59, 130, 246, 1)", label="Tenkan-sen Color"),
        color("kijun_color", "rgba(239, 68, 68, 1)", label="Kijun-sen Color"),
        color("senkou_a_color", "rgba(34, 197, 94, 1)", label="Senkou Span A Color"),
        color("senkou_b_color", "rgba(180, 83, 9, 1)", label="Senkou Span B Color"),
        color("chikou_color", "rgba(147, 51, 234, 1)", label="Chikou Span Color"),
        color("cloud_color", "rgba(255, 165, 0, 0.2)", label="Cloud Color"),
    ],
    description="Conversion/base lines, leading cloud and lagging span",
)
def calculate_ichimoku(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate Ichimoku Kinko Hyo.

    Tenkan = midpoint(tenkan_period), Kijun = midpoint(kijun_period),
    Senkou A = (Tenkan + Kijun) / 2 and Senkou B = midpoint(senkou_period),
    both plotted ``displacement`` bars ahead; Chikou = close plotted
    ``displacement`` bars behind. The last ``displacement`` leading values
    fall past the final candle and are carried as a projection on
    synthesized timestamps.
    """
    displacement = params["displacement"]
    high_values, low_values = highs(data), lows(data)

    tenkan = midpoint(high_values, low_values, params["tenkan_period"])
    kijun = midpoint(high_values, low_values, params["kijun_period"])
    raw_a = [
        (t + k) / 2.0 if t is not None and k is not None else None
        for t, k in zip(tenkan, kijun)
    ]
    raw_b = midpoint(high_values, low_values, params["senkou_period"])
    chikou = shift(closes(data), -displacement)

    future_times = tuple(future_timestamps([p.time for p in data], displacement))

    def leading(raw: Series) -> Optional[Projection]:
        if not future_times:
            return None
        tail = raw[len(raw) - displacement:] if len(raw) >= displacement else raw
        # Pad on the left when there are fewer bars than the displacement
        tail = [None] * (displacement - len(tail)) + list(tail)
        return Projection(times=future_times, values=tuple(tail))

    cloud = params["cloud_color"]
    return [
        OutputSeries("Tenkan-sen", tenkan, style={"color": params["tenkan_color"], "width": 1}),
        OutputSeries("Kijun-sen", kijun, style={"color": params["kijun_color"], "width": 1}),
        OutputSeries("Senkou Span A", shift(raw_a, displacement), role=SeriesRole.BAND,
                     style={"color": params["senkou_a_color"], "width": 1},
                     projection=leading(raw_a)),
        OutputSeries("Senkou Span B", shift(raw_b, displacement), role=SeriesRole.BAND,
                     style={"color": params["senkou_b_color"], "width": 1,
                            "fill": "tonexty", "fillcolor": cloud},
                     projection=leading(raw_b)),
        OutputSeries("Chikou Span", chikou, style={"color": params["chikou_color"], "width": 1}),
    ]
