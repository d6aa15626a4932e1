"""Tests for pydantic-settings configuration."""
import pytest
from pydantic import ValidationError

from chartengine.config import settings
from chartengine.config.settings import AxisConfig, LayoutConfig, LoggerConfig


class TestDefaults:
    """Default values of each section."""

    def test_layout_defaults(self):
        config = LayoutConfig()

        assert config.default_pane_share == 0.3
        assert config.time_axis_share == 0.08
        assert config.main_margin_share == 0.05
        assert config.min_main_share == 0.1

    def test_axis_defaults(self):
        config = AxisConfig()

        assert config.zoom_sensitivity == 2.0
        assert config.value_padding == 0.1
        assert config.reconcile_interval_seconds == 1.0

    def test_global_settings(self):
        assert settings.APP_NAME == "ChartEngine"
        assert isinstance(settings.LAYOUT, LayoutConfig)
        assert isinstance(settings.AXIS, AxisConfig)
        assert isinstance(settings.LOGGER, LoggerConfig)


class TestEnvironment:
    """Nested sections read their own env prefix."""

    def test_layout_env_override(self, monkeypatch):
        monkeypatch.setenv("LAYOUT__DEFAULT_PANE_SHARE", "0.25")

        assert LayoutConfig().default_pane_share == 0.25

    def test_axis_env_override(self, monkeypatch):
        monkeypatch.setenv("AXIS__ZOOM_SENSITIVITY", "3.5")

        assert AxisConfig().zoom_sensitivity == 3.5

    def test_tests_run_without_log_file(self):
        assert LoggerConfig().file_enabled is False

    def test_layout_share_validated(self):
        with pytest.raises(ValidationError):
            LayoutConfig(time_axis_share=1.5)
