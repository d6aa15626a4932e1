"""Chart composition: pane layout, axis synchronization and the session facade."""

from .layout import Pane, PaneLayout, compute_layout, axis_key
from .axis_sync import AxisSyncController, AxisUpdate, padded_range
from .session import ChartSession
from .payload import (
    ChartPayload,
    SeriesPayload,
    PanePayload,
    AxisRangePayload,
    build_payload,
)

__all__ = [
    "Pane",
    "PaneLayout",
    "compute_layout",
    "axis_key",
    "AxisSyncController",
    "AxisUpdate",
    "padded_range",
    "ChartSession",
    "ChartPayload",
    "SeriesPayload",
    "PanePayload",
    "AxisRangePayload",
    "build_payload",
]
