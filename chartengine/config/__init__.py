"""
Configuration module
"""
from chartengine.config.settings import (
    settings,
    Settings,
    LoggerConfig,
    LayoutConfig,
    AxisConfig,
)

__all__ = [
    "settings",
    "Settings",
    "LoggerConfig",
    "LayoutConfig",
    "AxisConfig",
]
