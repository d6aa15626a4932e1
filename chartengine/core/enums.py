"""
Core enumerations used throughout the package.

These enums are shared by indicators, layout and the renderer payload and
should be imported from here (single source of truth).
"""

from enum import Enum


class ParameterKind(Enum):
    """Kind of a configurable indicator input."""
    NUMBER = "number"
    COLOR = "color"
    BOOLEAN = "boolean"
    ENUM = "enum"


class SeriesRole(Enum):
    """
    How a renderer should draw an output series.
    
    Values:
        LINE: Connected line
        BAND: Line that bounds a filled region with its sibling
        HISTOGRAM: Bars from zero
        MARKER: Isolated points
    """
    LINE = "line"
    BAND = "band"
    HISTOGRAM = "histogram"
    MARKER = "marker"


class IndicatorType(Enum):
    """Indicator classification."""
    TREND = "trend"
    MOMENTUM = "momentum"
    VOLATILITY = "volatility"
    SUPPORT_RESISTANCE = "support_resistance"
    PATTERN = "pattern"


class DragState(Enum):
    """
    Axis synchronization controller state.
    
    Values:
        IDLE: No interaction in progress
        DRAGGING_VALUE_AXIS: A pane's value axis is being drag-zoomed
    """
    IDLE = "idle"
    DRAGGING_VALUE_AXIS = "dragging_value_axis"
