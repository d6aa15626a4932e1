"""Indicator calculation framework.

All indicators are calculated from OHLC data only and return series
aligned 1:1 with the input. Importing this package registers every
indicator with INDICATOR_REGISTRY.
"""

from .base import (
    MAIN_PANE,
    OHLCPoint,
    ParameterSpec,
    ResolvedParameters,
    IndicatorDescriptor,
    IndicatorDefinition,
    IndicatorInstance,
    OutputSeries,
    Projection,
)
from .registry import (
    INDICATOR_REGISTRY,
    IndicatorRegistry,
    indicator,
    create_indicator,
    describe_indicator,
    list_indicators,
)

# Import all indicators to trigger registration
from . import trend
from . import momentum
from . import volatility
from . import support
from . import patterns

__all__ = [
    "MAIN_PANE",
    "OHLCPoint",
    "ParameterSpec",
    "ResolvedParameters",
    "IndicatorDescriptor",
    "IndicatorDefinition",
    "IndicatorInstance",
    "OutputSeries",
    "Projection",
    "INDICATOR_REGISTRY",
    "IndicatorRegistry",
    "indicator",
    "create_indicator",
    "describe_indicator",
    "list_indicators",
]
