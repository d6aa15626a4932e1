"""ChartEngine - technical-analysis overlays, pane layout and axis synchronization.

Typical use:
    from chartengine import ChartSession
    session = ChartSession(points)
    session.select("sma", {"period": 20})
    session.select("macd")
    payload = session.payload()
"""

from chartengine.config import settings

__version__ = settings.APP_VERSION

from chartengine.indicators import (
    OHLCPoint,
    OutputSeries,
    IndicatorDescriptor,
    IndicatorInstance,
    INDICATOR_REGISTRY,
    create_indicator,
    describe_indicator,
    list_indicators,
)
from chartengine.chart import (
    ChartSession,
    PaneLayout,
    compute_layout,
    AxisSyncController,
)

__all__ = [
    "__version__",
    "settings",
    "OHLCPoint",
    "OutputSeries",
    "IndicatorDescriptor",
    "IndicatorInstance",
    "INDICATOR_REGISTRY",
    "create_indicator",
    "describe_indicator",
    "list_indicators",
    "ChartSession",
    "PaneLayout",
    "compute_layout",
    "AxisSyncController",
]
