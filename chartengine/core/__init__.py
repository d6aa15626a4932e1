"""
Core primitives shared across the package.

This package contains:
- enums.py: ParameterKind, SeriesRole, IndicatorType, DragState
- exceptions.py: Custom exceptions
"""

from chartengine.core.enums import ParameterKind, SeriesRole, IndicatorType, DragState
from chartengine.core.exceptions import (
    ChartEngineError,
    ConfigurationError,
    InvalidParameterError,
    UnknownIndicatorError,
    IndicatorRegistrationError,
    DataValidationError,
    LayoutError,
)

__all__ = [
    # Enums
    'ParameterKind',
    'SeriesRole',
    'IndicatorType',
    'DragState',
    # Exceptions
    'ChartEngineError',
    'ConfigurationError',
    'InvalidParameterError',
    'UnknownIndicatorError',
    'IndicatorRegistrationError',
    'DataValidationError',
    'LayoutError',
]
