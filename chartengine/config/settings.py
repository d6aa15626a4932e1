"""
Application configuration using pydantic-settings with nested structure
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path


# ============================================================================
# NESTED CONFIGURATION MODELS
# ============================================================================

# Absolute path to the project-level .env file
_BASE_DIR = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BASE_DIR / ".env"


class LoggerConfig(BaseSettings):
    """Logger configuration settings."""
    default_level: str = "INFO"
    console_level: str = "WARNING"
    file_enabled: bool = False
    remove_default_handler: bool = True
    file_path: str = "./data/logs/chartengine.log"
    rotation: str = "10 MB"
    retention: str = "30 days"
    filter_enabled: bool = True
    filter_max_history: int = 5
    filter_time_threshold_seconds: float = 1.0
    model_config = SettingsConfigDict(env_prefix="LOGGER__", extra="ignore")


class LayoutConfig(BaseSettings):
    """Vertical space partitioning of the chart (fractions of total height)."""
    default_pane_share: float = 0.3
    time_axis_share: float = 0.08
    main_margin_share: float = 0.05
    min_main_share: float = 0.1
    model_config = SettingsConfigDict(env_prefix="LAYOUT__", extra="ignore")

    @field_validator(
        "default_pane_share", "time_axis_share", "main_margin_share", "min_main_share"
    )
    @classmethod
    def _check_fraction(cls, value: float) -> float:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"layout share must be within [0, 1], got {value}")
        return value


class AxisConfig(BaseSettings):
    """Axis synchronization and drag-to-zoom behaviour."""
    zoom_sensitivity: float = 2.0
    value_padding: float = 0.1
    reconcile_interval_seconds: float = 1.0
    model_config = SettingsConfigDict(env_prefix="AXIS__", extra="ignore")


# ============================================================================
# MAIN SETTINGS CLASS
# ============================================================================

class Settings(BaseSettings):
    """Application settings loaded from environment variables.
    
    Configuration is organized into nested sections.
    Use double underscore (__) in env vars to reach nested configs.
    
    Example:
        LOGGER__DEFAULT_LEVEL=DEBUG
        LAYOUT__DEFAULT_PANE_SHARE=0.25
        AXIS__ZOOM_SENSITIVITY=3.0
    """
    
    # Application metadata
    APP_NAME: str = "ChartEngine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    
    # Nested configuration sections (constructed from environment in __init__)
    LOGGER: LoggerConfig | None = None
    LAYOUT: LayoutConfig | None = None
    AXIS: AxisConfig | None = None
    
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Construct nested configs AFTER environment is loaded
        self.LOGGER = LoggerConfig()
        self.LAYOUT = LayoutConfig()
        self.AXIS = AxisConfig()
    
    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        env_prefix=""
    )


# Global settings instance
from dotenv import load_dotenv

# Load .env file into environment variables
if _ENV_FILE.exists():
    load_dotenv(str(_ENV_FILE), override=False)

settings = Settings()
