"""Momentum indicators - oscillators drawn in their own pane."""

from typing import List, NamedTuple, Sequence

from chartengine.core.enums import IndicatorType, SeriesRole

from .base import OHLCPoint, OutputSeries, ResolvedParameters, color, number
from .registry import indicator
from .utils import (
    Series,
    atr,
    closes,
    ema,
    highest,
    highs,
    lowest,
    lows,
    population_stddev,
    sma,
    subtract,
    true_range,
    wilder_smooth,
)

GREEN = "rgb(34, 197, 94)"
RED = "rgb(239, 68, 68)"
BLUE = "rgb(59, 130, 246)"
YELLOW = "rgb(234, 179, 8)"


def _constant(value: float, length: int) -> Series:
    return [value] * length


@indicator(
    "macd",
    "MACD",
    IndicatorType.MOMENTUM,
    parameters=[
        number("fast_period", 12, 1, 50, label="Fast Period"),
        number("slow_period", 26, 1, 100, label="Slow Period"),
        number("signal_period", 9, 1, 50, label="Signal Period"),
        color("macd_color", BLUE, label="MACD Line Color"),
        color("signal_color", "rgb(236, 72, 153)", label="Signal Line Color"),
        color("hist_positive_color", GREEN, label="Histogram Positive Color"),
        color("hist_negative_color", RED, label="Histogram Negative Color"),
    ],
    subplot=True,
    value_range=(-2.0, 2.0),
    description="Fast/slow EMA spread with signal line and histogram",
)
def calculate_macd(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate MACD.

    MACD = EMA(close, fast) - EMA(close, slow)
    Signal = EMA(MACD, signal), warm-up counted from the MACD line's own
    first defined bar
    Histogram = MACD - Signal
    """
    close_values = closes(data)
    macd_line = subtract(
        ema(close_values, params["fast_period"]),
        ema(close_values, params["slow_period"]),
    )
    signal = ema(macd_line, params["signal_period"])
    histogram = subtract(macd_line, signal)

    return [
        OutputSeries("MACD", macd_line, style={"color": params["macd_color"], "width": 1.5}),
        OutputSeries("Signal", signal, style={"color": params["signal_color"], "width": 1.5}),
        OutputSeries("Histogram", histogram, role=SeriesRole.HISTOGRAM,
                     style={"positive_color": params["hist_positive_color"],
                            "negative_color": params["hist_negative_color"]}),
    ]


def rsi(close_values: Sequence[float], period: int) -> Series:
    """Wilder RSI.

    Changes start at bar 1, so the first RSI is at index ``period``.
    A zero average loss gives 100.

    Args:
        close_values: Closing prices
        period: Smoothing period

    Returns:
        RSI series in [0, 100]
    """
    gains: Series = [None]
    losses: Series = [None]
    for i in range(1, len(close_values)):
        change = close_values[i] - close_values[i - 1]
        gains.append(change if change > 0 else 0.0)
        losses.append(-change if change < 0 else 0.0)
    gains, losses = gains[:len(close_values)], losses[:len(close_values)]

    avg_gain = wilder_smooth(gains, period)
    avg_loss = wilder_smooth(losses, period)

    result: Series = []
    for g, l in zip(avg_gain, avg_loss):
        if g is None or l is None:
            result.append(None)
        elif l == 0:
            result.append(100.0)
        else:
            result.append(100.0 - 100.0 / (1.0 + g / l))
    return result


@indicator(
    "rsi",
    "Relative Strength Index",
    IndicatorType.MOMENTUM,
    parameters=[
        number("period", 14, 1, 100, label="Period"),
        number("overbought", 70, 50, 90, label="Overbought Level"),
        number("oversold", 30, 10, 50, label="Oversold Level"),
        color("line_color", BLUE, label="RSI Line Color"),
        color("overbought_color", RED, label="Overbought Line Color"),
        color("oversold_color", GREEN, label="Oversold Line Color"),
    ],
    subplot=True,
    value_range=(0.0, 100.0),
    description="Wilder-smoothed ratio of average gains to losses",
)
def calculate_rsi(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    n = len(data)
    return [
        OutputSeries(f"RSI ({params['period']})", rsi(closes(data), params["period"]),
                     style={"color": params["line_color"], "width": 1.5}),
        OutputSeries("Overbought", _constant(float(params["overbought"]), n),
                     style={"color": params["overbought_color"], "width": 1, "dash": "dash"}),
        OutputSeries("Oversold", _constant(float(params["oversold"]), n),
                     style={"color": params["oversold_color"], "width": 1, "dash": "dash"}),
        OutputSeries("Centerline", _constant(50.0, n),
                     style={"color": "rgba(128, 128, 128, 0.5)", "width": 1, "dash": "dot"}),
    ]


class ADXResult(NamedTuple):
    adx: Series
    plus_di: Series
    minus_di: Series


def adx(
    high_values: Sequence[float],
    low_values: Sequence[float],
    close_values: Sequence[float],
    period: int,
) -> ADXResult:
    """Average Directional Index with +DI / -DI.

    +DM = up move if it exceeds the down move and is positive, else 0
    (-DM mirrors it). TR, +DM and -DM are Wilder-smoothed, so DI is first
    defined at ``period - 1`` and ADX at ``2 * period - 2``.

    DX = |+DI - -DI| / (+DI + -DI) * 100 is undefined when both DIs are
    zero; that bar emits no value.
    """
    n = len(close_values)
    plus_dm: List[float] = []
    minus_dm: List[float] = []
    for i in range(n):
        if i == 0:
            plus_dm.append(0.0)
            minus_dm.append(0.0)
            continue
        up_move = high_values[i] - high_values[i - 1]
        down_move = low_values[i - 1] - low_values[i]
        plus_dm.append(up_move if up_move > down_move and up_move > 0 else 0.0)
        minus_dm.append(down_move if down_move > up_move and down_move > 0 else 0.0)

    smooth_tr = wilder_smooth(true_range(high_values, low_values, close_values), period)
    smooth_plus = wilder_smooth(plus_dm, period)
    smooth_minus = wilder_smooth(minus_dm, period)

    plus_di: Series = []
    minus_di: Series = []
    dx: Series = []
    for tr_value, p_value, m_value in zip(smooth_tr, smooth_plus, smooth_minus):
        if tr_value is None or tr_value == 0:
            plus_di.append(None)
            minus_di.append(None)
            dx.append(None)
            continue
        p_di = 100.0 * p_value / tr_value
        m_di = 100.0 * m_value / tr_value
        plus_di.append(p_di)
        minus_di.append(m_di)
        di_sum = p_di + m_di
        dx.append(None if di_sum == 0 else 100.0 * abs(p_di - m_di) / di_sum)

    return ADXResult(wilder_smooth(dx, period), plus_di, minus_di)


@indicator(
    "adx",
    "Average Directional Index",
    IndicatorType.MOMENTUM,
    parameters=[
        number("period", 14, 1, 50, label="Period"),
        number("strong_trend", 25, 10, 50, label="Strong Trend Level"),
        color("adx_color", YELLOW, label="ADX Line Color"),
        color("plus_di_color", GREEN, label="+DI Line Color"),
        color("minus_di_color", RED, label="-DI Line Color"),
    ],
    subplot=True,
    value_range=(0.0, 100.0),
    description="Trend strength from smoothed directional movement",
)
def calculate_adx(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    result = adx(highs(data), lows(data), closes(data), params["period"])
    return [
        OutputSeries("ADX", result.adx, style={"color": params["adx_color"], "width": 2}),
        OutputSeries("+DI", result.plus_di, style={"color": params["plus_di_color"], "width": 1}),
        OutputSeries("-DI", result.minus_di, style={"color": params["minus_di_color"], "width": 1}),
        OutputSeries("Strong Trend", _constant(float(params["strong_trend"]), len(data)),
                     style={"color": "rgba(128, 128, 128, 0.5)", "width": 1, "dash": "dash"}),
    ]


@indicator(
    "squeeze_momentum",
    "Squeeze Momentum",
    IndicatorType.MOMENTUM,
    parameters=[
        number("bb_period", 20, 1, 100, label="BB Period"),
        number("bb_multiplier", 2.0, 0.1, 5.0, 0.1, label="BB Multiplier"),
        number("kc_period", 20, 1, 100, label="KC Period"),
        number("kc_multiplier", 1.5, 0.1, 5.0, 0.1, label="KC Multiplier"),
        number("momentum_period", 12, 1, 100, label="Momentum Period"),
        number("fast_period", 20, 1, 200, label="Fast Momentum SMA"),
        number("slow_period", 50, 1, 200, label="Slow Momentum SMA"),
        color("squeeze_color", YELLOW, label="Squeeze Color"),
        color("up_color", GREEN, label="Positive Momentum Color"),
        color("down_color", RED, label="Negative Momentum Color"),
        color("fast_color", BLUE, label="Fast SMA Color"),
        color("slow_color", "rgb(147, 51, 234)", label="Slow SMA Color"),
    ],
    subplot=True,
    value_range=(-5.0, 5.0),
    description="Momentum histogram with Bollinger-inside-Keltner squeeze flags",
)
def calculate_squeeze_momentum(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate Squeeze Momentum.

    Squeeze at bar i: BB upper < KC upper and BB lower > KC lower, with
    BB = SMA ± bb_multiplier * σ and KC = SMA ± kc_multiplier * ATR.
    Momentum = close - (highest close + lowest close) / 2.
    """
    close_values = closes(data)

    bb_mid = sma(close_values, params["bb_period"])
    bb_sigma = population_stddev(close_values, params["bb_period"])
    kc_mid = sma(close_values, params["kc_period"])
    kc_range = atr(highs(data), lows(data), close_values, params["kc_period"])

    squeeze: Series = []
    for m, s, k, r in zip(bb_mid, bb_sigma, kc_mid, kc_range):
        if None in (m, s, k, r):
            squeeze.append(None)
            continue
        bb_upper = m + params["bb_multiplier"] * s
        bb_lower = m - params["bb_multiplier"] * s
        kc_upper = k + params["kc_multiplier"] * r
        kc_lower = k - params["kc_multiplier"] * r
        squeeze.append(0.0 if bb_upper < kc_upper and bb_lower > kc_lower else None)

    period = params["momentum_period"]
    top = highest(close_values, period)
    bottom = lowest(close_values, period)
    momentum: Series = [
        c - (h + l) / 2.0 if h is not None and l is not None else None
        for c, h, l in zip(close_values, top, bottom)
    ]

    return [
        OutputSeries("Momentum", momentum, role=SeriesRole.HISTOGRAM,
                     style={"positive_color": params["up_color"],
                            "negative_color": params["down_color"]}),
        OutputSeries(f"Momentum SMA ({params['fast_period']})", sma(momentum, params["fast_period"]),
                     style={"color": params["fast_color"], "width": 1}),
        OutputSeries(f"Momentum SMA ({params['slow_period']})", sma(momentum, params["slow_period"]),
                     style={"color": params["slow_color"], "width": 1}),
        OutputSeries("Squeeze", squeeze, role=SeriesRole.MARKER,
                     style={"color": params["squeeze_color"], "symbol": "circle", "size": 5}),
    ]
