"""
Custom exceptions for the chart engine.

All custom exceptions are defined here for easy discovery
and consistent error handling throughout the package.
"""
from typing import Dict, Optional


class ChartEngineError(Exception):
    """Base exception for all chart engine errors."""
    pass


class ConfigurationError(ChartEngineError):
    """Raised when there's an error in configuration."""
    pass


class InvalidParameterError(ChartEngineError, ValueError):
    """Raised by strict parameter resolution when supplied values are rejected.
    
    Attributes:
        indicator_id: Indicator whose parameters were rejected
        rejected: Mapping of parameter name -> reason
    """
    
    def __init__(self, indicator_id: str, rejected: Dict[str, str]):
        self.indicator_id = indicator_id
        self.rejected = dict(rejected)
        details = ", ".join(f"{name}: {reason}" for name, reason in self.rejected.items())
        super().__init__(f"Invalid parameters for '{indicator_id}': {details}")


class UnknownIndicatorError(ChartEngineError, KeyError):
    """Raised when an indicator id is required but not registered."""
    
    def __init__(self, indicator_id: str, known: Optional[list] = None):
        self.indicator_id = indicator_id
        message = f"Unknown indicator: {indicator_id}"
        if known:
            message += f". Registered indicators: {', '.join(known)}"
        super().__init__(message)
    
    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class IndicatorRegistrationError(ChartEngineError):
    """Raised when an indicator cannot be registered (e.g. duplicate id)."""
    pass


class DataValidationError(ChartEngineError, ValueError):
    """Raised when an OHLC sequence violates ordering or shape rules."""
    pass


class LayoutError(ChartEngineError):
    """Raised when a pane layout cannot be computed."""
    pass
