"""Axis synchronization controller.

Keeps every pane's time axis locked to one canonical range while each
pane's value axis stays independently adjustable through drag-to-zoom.

States:
    IDLE                 no interaction in progress
    DRAGGING_VALUE_AXIS  one pane's value axis follows the pointer

All mutations happen synchronously on the caller's thread. Listeners
registered with ``subscribe`` receive an ``AxisUpdate`` describing the
renderer keys to apply; the controller never talks to a renderer itself.
"""

import math
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from chartengine.config import settings
from chartengine.config.settings import AxisConfig
from chartengine.core.enums import DragState
from chartengine.data.ohlc import parse_timestamp
from chartengine.logger import logger

from .layout import PaneLayout, axis_key

TimeRange = Tuple[datetime, datetime]
ValueRange = Tuple[float, float]

# e.g. "xaxis.range", "xaxis2.range[0]", "yaxis3.autorange"
_RELAYOUT_KEY = re.compile(r"^([xy])axis(\d*)\.(range|range\[(0|1)\]|autorange)$")


@dataclass(frozen=True)
class AxisUpdate:
    """Renderer keys to apply, e.g. {"xaxis2.range": [start, end]}.

    Attributes:
        source: What triggered the update (time, value, reconcile, layout)
        changes: Renderer relayout keys -> values
    """
    source: str
    changes: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class _Drag:
    pane_id: str
    start_y: float
    plot_height: float
    start_range: ValueRange


def padded_range(values: Sequence[Optional[float]], padding: float) -> Optional[ValueRange]:
    """Min/max of the defined values widened by ``padding`` of the span on each side.

    A zero span is widened by ``padding`` of the magnitude (or 1.0 around zero).
    Returns None when nothing is defined.
    """
    defined = [v for v in values if v is not None]
    if not defined:
        return None
    low, high = min(defined), max(defined)
    span = high - low
    if span == 0:
        span = abs(high) or 1.0
    pad = span * padding
    return (low - pad, high + pad)


def _parse_time(value: Any, like: Optional[datetime] = None) -> datetime:
    """Parse a renderer timestamp into the timezone convention of ``like``.

    Aware values are converted to UTC and made naive when the canonical
    range is naive; naive values take the canonical range's tzinfo.

    Raises:
        ValueError: If the value is not a timestamp
    """
    parsed = parse_timestamp(value)
    if like is None:
        return parsed
    if like.tzinfo is None and parsed.tzinfo is not None:
        return parsed.astimezone(timezone.utc).replace(tzinfo=None)
    if like.tzinfo is not None and parsed.tzinfo is None:
        return parsed.replace(tzinfo=like.tzinfo)
    if like.tzinfo is not None:
        return parsed.astimezone(like.tzinfo)
    return parsed


class AxisSyncController:
    """Owns the canonical AxisRange state of one chart session."""

    def __init__(
        self,
        layout: Optional[PaneLayout] = None,
        config: Optional[AxisConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._config = config or settings.AXIS
        self._clock = clock
        self._layout: Optional[PaneLayout] = None
        self._time_range: Optional[TimeRange] = None
        self._home_time_range: Optional[TimeRange] = None
        self._value_ranges: Dict[str, ValueRange] = {}
        self._home_value_ranges: Dict[str, ValueRange] = {}
        self._drag: Optional[_Drag] = None
        self._subscribers: List[Callable[[AxisUpdate], None]] = []
        self._last_reconcile: Optional[float] = None

        if layout is not None:
            self.apply_layout(layout)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> DragState:
        return DragState.DRAGGING_VALUE_AXIS if self._drag else DragState.IDLE

    @property
    def dragging_pane(self) -> Optional[str]:
        return self._drag.pane_id if self._drag else None

    @property
    def time_range(self) -> Optional[TimeRange]:
        return self._time_range

    @property
    def layout(self) -> Optional[PaneLayout]:
        return self._layout

    def value_range(self, pane_id: str) -> Optional[ValueRange]:
        return self._value_ranges.get(pane_id)

    def value_ranges(self) -> Dict[str, ValueRange]:
        return dict(self._value_ranges)

    def pane_ids(self) -> List[str]:
        return self._layout.pane_ids() if self._layout else []

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, callback: Callable[[AxisUpdate], None]) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._subscribers.append(callback)

        def unsubscribe():
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: Callable[[AxisUpdate], None]) -> bool:
        """Remove a listener. Returns False if it was not subscribed."""
        try:
            self._subscribers.remove(callback)
            return True
        except ValueError:
            return False

    def _emit(self, update: AxisUpdate) -> AxisUpdate:
        for callback in list(self._subscribers):
            callback(update)
        return update

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def apply_layout(
        self,
        layout: PaneLayout,
        initial_ranges: Optional[Mapping[str, ValueRange]] = None,
    ) -> AxisUpdate:
        """Adopt a new pane layout.

        Panes that survive keep their current value range; new panes start
        from ``initial_ranges``. A drag on a removed pane is cancelled.
        """
        initial_ranges = initial_ranges or {}
        keep = set(layout.pane_ids())

        for pane_id in list(self._value_ranges):
            if pane_id not in keep:
                del self._value_ranges[pane_id]
                self._home_value_ranges.pop(pane_id, None)
        if self._drag and self._drag.pane_id not in keep:
            self.cancel()

        for pane_id, value_range in initial_ranges.items():
            if pane_id not in keep:
                continue
            self._home_value_ranges[pane_id] = value_range
            if pane_id not in self._value_ranges:
                self._value_ranges[pane_id] = value_range

        self._layout = layout
        changes: Dict[str, Any] = {}
        for pane in layout.panes:
            if pane.id in self._value_ranges:
                changes[f"{pane.value_axis_key}.range"] = list(self._value_ranges[pane.id])
            if self._time_range is not None:
                changes[f"{pane.time_axis_key}.range"] = list(self._time_range)
        return self._emit(AxisUpdate("layout", changes))

    def reset_time_range(self, start: datetime, end: datetime) -> Optional[AxisUpdate]:
        """Set the home (autorange) time range and move the canonical range to it."""
        self._home_time_range = (start, end)
        return self.set_time_range(start, end)

    def reset_value_range(self, pane_id: str, low: float, high: float) -> Optional[AxisUpdate]:
        """Set a pane's home (autorange) value range and move its range to it."""
        self._home_value_ranges[pane_id] = (low, high)
        return self.set_value_range(pane_id, low, high)

    # ------------------------------------------------------------------
    # Time axis (shared)
    # ------------------------------------------------------------------

    def set_time_range(self, start: datetime, end: datetime) -> Optional[AxisUpdate]:
        """Change the canonical time range and broadcast it to every pane.

        Returns None (and changes nothing) when start > end.
        """
        if start > end:
            logger.warning(f"Ignoring inverted time range {start} > {end}")
            return None
        self._time_range = (start, end)
        return self._emit(AxisUpdate("time", self._time_changes(self.pane_ids())))

    def _time_changes(self, pane_ids: Sequence[str]) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}
        if self._layout is None or self._time_range is None:
            return changes
        for pane_id in pane_ids:
            pane = self._layout.get(pane_id)
            if pane is not None:
                changes[f"{pane.time_axis_key}.range"] = list(self._time_range)
        return changes

    def reconcile(self, renderer_time_ranges: Mapping[str, Optional[TimeRange]]) -> Dict[str, TimeRange]:
        """Correct panes whose live time axis drifted from the canonical range.

        Args:
            renderer_time_ranges: pane id -> time range currently shown;
                panes missing from the mapping count as drifted

        Returns:
            pane id -> canonical range for each corrected pane (empty when
            everything is aligned, so repeated calls are no-ops)
        """
        self._last_reconcile = self._clock()
        if self._time_range is None:
            return {}

        drifted = []
        for pane_id in self.pane_ids():
            shown = renderer_time_ranges.get(pane_id)
            if shown is None or tuple(shown) != self._time_range:
                drifted.append(pane_id)

        if drifted:
            logger.debug(f"Reconciling time axis of {len(drifted)} pane(s): {drifted}")
            self._emit(AxisUpdate("reconcile", self._time_changes(drifted)))
        return {pane_id: self._time_range for pane_id in drifted}

    def maybe_reconcile(
        self,
        renderer_time_ranges: Mapping[str, Optional[TimeRange]],
        now: Optional[float] = None,
    ) -> Optional[Dict[str, TimeRange]]:
        """Reconcile if the configured interval has elapsed since the last pass."""
        now = self._clock() if now is None else now
        interval = self._config.reconcile_interval_seconds
        if self._last_reconcile is not None and now - self._last_reconcile < interval:
            return None
        result = self.reconcile(renderer_time_ranges)
        self._last_reconcile = now
        return result

    # ------------------------------------------------------------------
    # Value axes (independent)
    # ------------------------------------------------------------------

    def set_value_range(self, pane_id: str, low: float, high: float) -> Optional[AxisUpdate]:
        """Change one pane's value range; other panes are untouched."""
        pane = self._layout.get(pane_id) if self._layout else None
        if pane is None:
            logger.warning(f"Ignoring value range for unknown pane '{pane_id}'")
            return None
        if low > high:
            low, high = high, low
        self._value_ranges[pane_id] = (low, high)
        return self._emit(AxisUpdate("value", {
            f"{pane.value_axis_key}.range": [low, high],
            f"{pane.value_axis_key}.autorange": False,
        }))

    def pointer_down(self, pane_id: str, y: float, plot_height: float) -> bool:
        """Start a drag on a pane's value-axis hit zone.

        A drag already in progress is ended first. Returns True if the
        controller is now dragging.
        """
        if self._drag:
            self.cancel()
        if plot_height <= 0:
            logger.warning(f"Cannot drag with plot height {plot_height}")
            return False
        start_range = self._value_ranges.get(pane_id)
        if start_range is None or self._layout is None or self._layout.get(pane_id) is None:
            logger.warning(f"Cannot drag value axis of unknown pane '{pane_id}'")
            return False

        self._drag = _Drag(pane_id, y, plot_height, start_range)
        logger.debug(f"Value-axis drag started on '{pane_id}'")
        return True

    def pointer_move(self, y: float) -> Optional[AxisUpdate]:
        """Zoom the dragged pane's value axis about its drag-start center.

        factor = exp(zoom_sensitivity * (y - start_y) / plot_height);
        moving down (larger y) widens the range, moving up narrows it.
        Idle moves are ignored.
        """
        drag = self._drag
        if drag is None:
            return None
        relative_move = (y - drag.start_y) / drag.plot_height
        factor = math.exp(self._config.zoom_sensitivity * relative_move)
        low, high = drag.start_range
        center = (low + high) / 2.0
        half = (high - low) * factor / 2.0
        return self.set_value_range(drag.pane_id, center - half, center + half)

    def pointer_up(self) -> bool:
        return self.cancel()

    def pointer_leave(self) -> bool:
        return self.cancel()

    def cancel(self) -> bool:
        """Return to IDLE from any trigger (pointer up/leave, key cancel, focus loss).

        Safe to call repeatedly; returns True only if a drag was ended.
        """
        if self._drag is None:
            return False
        logger.debug(f"Value-axis drag ended on '{self._drag.pane_id}'")
        self._drag = None
        return True

    # ------------------------------------------------------------------
    # Renderer events
    # ------------------------------------------------------------------

    def handle_relayout(self, event: Mapping[str, Any]) -> Optional[AxisUpdate]:
        """Fold a renderer relayout event back into the canonical state.

        Any time-axis change (from whichever pane) becomes the canonical
        range and is broadcast; value-axis changes only affect their own
        pane. Autorange resets to the home range.
        """
        if self._layout is None:
            return None

        time_parts: Dict[int, Any] = {}
        time_autorange = False
        value_parts: Dict[int, Dict[int, Any]] = {}
        value_autorange: List[int] = []

        for key, value in event.items():
            match = _RELAYOUT_KEY.match(key)
            if not match:
                continue
            axis, number, prop, bound = match.groups()
            index = int(number) if number else 1
            if axis == "x":
                if prop == "autorange":
                    time_autorange = time_autorange or bool(value)
                elif bound is None:
                    if not isinstance(value, (list, tuple)) or len(value) != 2:
                        logger.warning(f"Ignoring malformed relayout value {key}={value!r}")
                        continue
                    time_parts[0], time_parts[1] = value[0], value[1]
                else:
                    time_parts[int(bound)] = value
            else:
                if prop == "autorange":
                    if value:
                        value_autorange.append(index)
                elif bound is None:
                    value_parts.setdefault(index, {}).update({0: value[0], 1: value[1]})
                else:
                    value_parts.setdefault(index, {})[int(bound)] = value

        changes: Dict[str, Any] = {}

        new_time: Optional[TimeRange] = None
        try:
            if time_parts and self._time_range is not None:
                current = self._time_range
                new_time = (
                    _parse_time(time_parts.get(0, current[0]), like=current[0]),
                    _parse_time(time_parts.get(1, current[1]), like=current[1]),
                )
            elif time_parts and 0 in time_parts and 1 in time_parts:
                start = _parse_time(time_parts[0])
                new_time = (start, _parse_time(time_parts[1], like=start))
        except ValueError as e:
            logger.warning(f"Ignoring unparseable time range in relayout event: {e}")
        if new_time is None and time_autorange and self._home_time_range is not None:
            new_time = self._home_time_range
        if new_time is not None:
            update = self.set_time_range(*new_time)
            if update is not None:
                changes.update(update.changes)

        for index in value_autorange:
            pane = self._layout.by_axis_index(index)
            if pane is not None and pane.id in self._home_value_ranges:
                update = self.set_value_range(pane.id, *self._home_value_ranges[pane.id])
                changes.update(update.changes)

        for index, parts in value_parts.items():
            pane = self._layout.by_axis_index(index)
            current = self._value_ranges.get(pane.id) if pane else None
            if pane is None or (current is None and len(parts) < 2):
                continue
            low = float(parts.get(0, current[0] if current else 0.0))
            high = float(parts.get(1, current[1] if current else 0.0))
            update = self.set_value_range(pane.id, low, high)
            changes.update(update.changes)

        return AxisUpdate("relayout", changes) if changes else None

    def renderer_ranges(self) -> Dict[str, Any]:
        """Full snapshot of renderer range keys for every pane."""
        changes: Dict[str, Any] = {}
        if self._layout is None:
            return changes
        for pane in self._layout.panes:
            if pane.id in self._value_ranges:
                changes[f"{axis_key(pane.value_axis)}.range"] = list(self._value_ranges[pane.id])
            if self._time_range is not None:
                changes[f"{axis_key(pane.time_axis)}.range"] = list(self._time_range)
        return changes
