"""Pattern indicators built on pivot-point detection.

Channels, trendlines and Elliott wave labelling all start from the same
pivot test: a bar is a pivot high (low) when no other bar within
``lookback`` bars on either side has a higher high (lower low).
"""

from typing import List, NamedTuple, Optional, Sequence

from chartengine.core.enums import IndicatorType, SeriesRole

from .base import OHLCPoint, OutputSeries, Projection, ResolvedParameters, boolean, color, number
from .registry import indicator
from .utils import (
    Pivot,
    Series,
    future_timestamps,
    highs,
    is_pivot_high,
    is_pivot_low,
    line_value,
    lows,
    pivot_highs,
    pivot_lows,
)

# Channel anchors steeper than this fraction of price per bar are ignored
MAX_CHANNEL_SLOPE = 0.01


def _extended_line(start: Pivot, end: Pivot, offset: float, length: int) -> Series:
    """Line through two pivots, shifted by ``offset``, defined from start to the last bar."""
    values: Series = [None] * length
    for i in range(start.index, length):
        values[i] = line_value(start, end, i) + offset
    return values


def _line_projection(
    data: Sequence[OHLCPoint],
    start: Pivot,
    end: Pivot,
    offset: float,
    count: int,
) -> Optional[Projection]:
    times = tuple(future_timestamps([p.time for p in data], count))
    if not times:
        return None
    last = len(data) - 1
    return Projection(
        times,
        tuple(line_value(start, end, last + k) + offset for k in range(1, len(times) + 1)),
    )


class Channel(NamedTuple):
    start: Pivot
    end: Pivot
    upper_offset: float
    lower_offset: float

    @property
    def width(self) -> float:
        return self.upper_offset - self.lower_offset


def find_channels(
    data: Sequence[OHLCPoint],
    lookback: int,
    min_swings: int,
    max_channels: int,
) -> List[Channel]:
    """Fit parallel channels through pairs of same-kind pivots.

    For every pair of pivot highs (and every pair of pivot lows) a base
    line is drawn through the pair; the channel edges are the base line
    shifted to the highest and lowest pivot of either kind between the
    two anchors. Pairs whose span holds fewer than ``min_swings`` pivots
    or whose slope exceeds ``MAX_CHANNEL_SLOPE`` of the anchor price per
    bar are skipped. Channels are ordered widest first.
    """
    swing_highs = pivot_highs(highs(data), lookback)
    swing_lows = pivot_lows(lows(data), lookback)
    swings = sorted(swing_highs + swing_lows, key=lambda p: p.index)

    channels: List[Channel] = []
    for anchors in (swing_highs, swing_lows):
        for a in range(len(anchors)):
            for b in range(a + 1, len(anchors)):
                start, end = anchors[a], anchors[b]
                slope = (end.price - start.price) / (end.index - start.index)
                if start.price != 0 and abs(slope) / abs(start.price) > MAX_CHANNEL_SLOPE:
                    continue
                inside = [p for p in swings if start.index <= p.index <= end.index]
                if len(inside) < min_swings:
                    continue
                offsets = [p.price - line_value(start, end, p.index) for p in inside]
                channels.append(Channel(start, end, max(offsets), min(offsets)))

    channels.sort(key=lambda c: c.width, reverse=True)
    return channels[:max_channels]


@indicator(
    "channels",
    "Price Channels",
    IndicatorType.PATTERN,
    parameters=[
        number("lookback", 5, 2, 20, label="Swing Lookback"),
        number("min_swings", 3, 2, 10, label="Minimum Swings"),
        number("max_channels", 3, 1, 5, label="Maximum Channels"),
        number("future_points", 15, 0, 100, label="Projection Bars"),
        color("channel_color", "rgb(234, 179, 8)", label="Channel Color"),
        number("fill_opacity", 0.1, 0.0, 1.0, 0.05, label="Fill Opacity"),
    ],
    description="Parallel channels fitted through swing points",
)
def calculate_channels(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    channels = find_channels(data, params["lookback"], params["min_swings"], params["max_channels"])
    n = len(data)
    style = {"color": params["channel_color"], "width": 1}
    series = []
    for rank, channel in enumerate(channels, start=1):
        series.append(OutputSeries(
            f"Channel {rank} Upper",
            _extended_line(channel.start, channel.end, channel.upper_offset, n),
            role=SeriesRole.BAND,
            style=style,
            projection=_line_projection(data, channel.start, channel.end,
                                        channel.upper_offset, params["future_points"]),
        ))
        series.append(OutputSeries(
            f"Channel {rank} Lower",
            _extended_line(channel.start, channel.end, channel.lower_offset, n),
            role=SeriesRole.BAND,
            style={**style, "fill": "tonexty", "opacity": params["fill_opacity"]},
            projection=_line_projection(data, channel.start, channel.end,
                                        channel.lower_offset, params["future_points"]),
        ))
    return series


class Trendline(NamedTuple):
    start: Pivot
    end: Pivot
    is_uptrend: bool


def find_trendlines(data: Sequence[OHLCPoint], lookback: int, threshold: float) -> List[Trendline]:
    """Connect consecutive pivots whose slope passes the threshold.

    Consecutive pivot highs falling faster than ``threshold`` per bar form
    downtrend lines; consecutive pivot lows rising faster form uptrend
    lines. Most recent lines come first.
    """
    lines: List[Trendline] = []
    swing_highs = pivot_highs(highs(data), lookback)
    for start, end in zip(swing_highs, swing_highs[1:]):
        slope = (end.price - start.price) / (end.index - start.index)
        if slope < -threshold:
            lines.append(Trendline(start, end, False))

    swing_lows = pivot_lows(lows(data), lookback)
    for start, end in zip(swing_lows, swing_lows[1:]):
        slope = (end.price - start.price) / (end.index - start.index)
        if slope > threshold:
            lines.append(Trendline(start, end, True))

    lines.sort(key=lambda line: line.end.index, reverse=True)
    return lines


@indicator(
    "trendlines",
    "Trendlines",
    IndicatorType.PATTERN,
    parameters=[
        number("lookback", 5, 2, 50, label="Lookback Period"),
        number("threshold", 0.02, 0.001, 0.1, 0.001, label="Trend Threshold"),
        number("future_points", 20, 5, 50, label="Future Points"),
        number("max_future_lines", 5, 1, 10, label="Max Future Lines"),
        color("uptrend_color", "rgb(59, 130, 246)", label="Uptrend Color"),
        color("downtrend_color", "rgb(239, 68, 68)", label="Downtrend Color"),
        number("pivot_opacity", 0.5, 0.0, 1.0, 0.1, label="Pivot Point Opacity"),
        number("projection_opacity", 0.5, 0.0, 1.0, 0.1, label="Projection Opacity"),
    ],
    description="Trendlines through consecutive swing highs/lows with projections",
)
def calculate_trendlines(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    """Calculate trendlines.

    Each line is drawn between its two pivots. The ``max_future_lines``
    most recent lines also get a dashed continuation from the second
    pivot to the last bar, projected ``future_points`` bars ahead.
    """
    n = len(data)
    lookback = params["lookback"]
    lines = find_trendlines(data, lookback, params["threshold"])

    series = []
    counts = {True: 0, False: 0}
    for rank, line in enumerate(lines):
        counts[line.is_uptrend] += 1
        kind = "Uptrend" if line.is_uptrend else "Downtrend"
        line_color = params["uptrend_color"] if line.is_uptrend else params["downtrend_color"]
        label = f"{kind} {counts[line.is_uptrend]}"

        segment: Series = [None] * n
        for i in range(line.start.index, line.end.index + 1):
            segment[i] = line_value(line.start, line.end, i)
        series.append(OutputSeries(label, segment, style={"color": line_color, "width": 1.5}))

        if rank < params["max_future_lines"]:
            continuation: Series = [None] * n
            for i in range(line.end.index, n):
                continuation[i] = line_value(line.start, line.end, i)
            series.append(OutputSeries(
                f"{label} Projection",
                continuation,
                style={"color": line_color, "width": 1, "dash": "dash",
                       "opacity": params["projection_opacity"]},
                projection=_line_projection(data, line.start, line.end, 0.0, params["future_points"]),
            ))

    high_marks: Series = [None] * n
    for pivot in pivot_highs(highs(data), lookback):
        high_marks[pivot.index] = pivot.price
    low_marks: Series = [None] * n
    for pivot in pivot_lows(lows(data), lookback):
        low_marks[pivot.index] = pivot.price

    series.append(OutputSeries("Pivot Highs", high_marks, role=SeriesRole.MARKER,
                               style={"color": params["downtrend_color"],
                                      "opacity": params["pivot_opacity"], "symbol": "circle"}))
    series.append(OutputSeries("Pivot Lows", low_marks, role=SeriesRole.MARKER,
                               style={"color": params["uptrend_color"],
                                      "opacity": params["pivot_opacity"], "symbol": "circle"}))
    return series


class WavePoint(NamedTuple):
    index: int
    price: float
    label: str
    is_impulse: bool


class _WaveCounter:
    """Cycles labels 1-5 (impulse) then A-C (corrective)."""

    CORRECTIVE = ("A", "B", "C")

    def __init__(self):
        self.position = 0

    def next(self):
        if self.position < 5:
            label, impulse = str(self.position + 1), True
        else:
            label, impulse = self.CORRECTIVE[self.position - 5], False
        self.position = (self.position + 1) % 8
        return label, impulse


def find_wave_points(data: Sequence[OHLCPoint], lookback: int, sensitivity: float) -> List[WavePoint]:
    """Label pivots as an Elliott wave sequence.

    Pivots are visited bar by bar and at most one is kept per bar. On an
    outside bar (both a pivot high and a pivot low) the side that
    alternates with the previous kept pivot is tried first. A pivot is
    kept only if it moved at least ``sensitivity`` (relative) from the
    previous kept pivot.
    """
    high_values, low_values = highs(data), lows(data)
    counter = _WaveCounter()
    points: List[WavePoint] = []
    last_was_high: Optional[bool] = None

    def accept(index: int, price: float) -> bool:
        if points:
            previous = points[-1].price
            if previous != 0 and abs(price - previous) / abs(previous) < sensitivity:
                return False
        label, impulse = counter.next()
        points.append(WavePoint(index, price, label, impulse))
        return True

    for i in range(lookback, len(data) - lookback):
        candidates = []
        if is_pivot_high(high_values, i, lookback):
            candidates.append((True, high_values[i]))
        if is_pivot_low(low_values, i, lookback):
            candidates.append((False, low_values[i]))
        if last_was_high:
            candidates.reverse()
        for is_high, price in candidates:
            if accept(i, price):
                last_was_high = is_high
                break
    return points


@indicator(
    "elliott_wave",
    "Elliott Wave",
    IndicatorType.PATTERN,
    parameters=[
        number("lookback", 10, 5, 50, label="Lookback Period"),
        number("sensitivity", 0.02, 0.0, 0.5, 0.001, label="Sensitivity"),
        color("impulse_color", "rgb(34, 197, 94)", label="Impulse Wave Color"),
        color("corrective_color", "rgb(239, 68, 68)", label="Corrective Wave Color"),
        boolean("show_labels", True, label="Show Labels"),
        number("label_size", 12, 8, 24, label="Label Size"),
    ],
    description="Swing pivots labelled as 1-5 impulse and A-C corrective waves",
)
def calculate_elliott_wave(data: Sequence[OHLCPoint], params: ResolvedParameters) -> List[OutputSeries]:
    points = find_wave_points(data, params["lookback"], params["sensitivity"])
    n = len(data)

    def wave_series(name: str, impulse: bool, line_color: str) -> OutputSeries:
        values: Series = [None] * n
        text: List[Optional[str]] = [None] * n
        for point in points:
            if point.is_impulse == impulse:
                values[point.index] = point.price
                text[point.index] = point.label
        return OutputSeries(
            name,
            values,
            text=text if params["show_labels"] else None,
            style={"color": line_color, "width": 2, "connectgaps": True,
                   "label_size": params["label_size"]},
        )

    return [
        wave_series("Impulse Waves", True, params["impulse_color"]),
        wave_series("Corrective Waves", False, params["corrective_color"]),
    ]
