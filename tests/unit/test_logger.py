"""Tests for the loguru deduplication filter and LoggerManager."""
import pytest
from types import SimpleNamespace
from unittest.mock import patch

from chartengine.logger import LogDeduplicationFilter, logger_manager


def _record(path="chartengine/chart/session.py", line=10):
    return {"file": SimpleNamespace(path=path), "line": line}


class TestLogDeduplicationFilter:
    """Duplicate suppression by file + line within a time window."""

    def test_first_record_passes(self):
        dedup = LogDeduplicationFilter()

        assert dedup(_record()) is True

    def test_repeat_within_window_suppressed(self):
        dedup = LogDeduplicationFilter(time_threshold_seconds=1.0)

        with patch("chartengine.logger.time.time", side_effect=[100.0, 100.5]):
            assert dedup(_record()) is True
            assert dedup(_record()) is False

    def test_repeat_after_window_passes(self):
        dedup = LogDeduplicationFilter(time_threshold_seconds=1.0)

        with patch("chartengine.logger.time.time", side_effect=[100.0, 101.5]):
            assert dedup(_record()) is True
            assert dedup(_record()) is True

    def test_different_line_passes(self):
        dedup = LogDeduplicationFilter()

        assert dedup(_record(line=10)) is True
        assert dedup(_record(line=11)) is True
        assert dedup(_record(path="other.py", line=10)) is True

    def test_history_is_bounded(self):
        dedup = LogDeduplicationFilter(max_history=2, time_threshold_seconds=60.0)

        dedup(_record(line=1))
        dedup(_record(line=2))
        dedup(_record(line=3))

        # Line 1 fell out of the history
        assert dedup(_record(line=1)) is True
        assert len(dedup.recent_logs) == 2


class TestLoggerManager:
    """Runtime level control."""

    def test_available_levels(self):
        levels = logger_manager.get_available_levels()

        assert levels[0] == "TRACE"
        assert "WARNING" in levels

    def test_set_level(self):
        original = logger_manager.get_level()
        try:
            assert logger_manager.set_level("debug") == "DEBUG"
            assert logger_manager.get_level() == "DEBUG"
        finally:
            logger_manager.set_level(original)

    def test_invalid_level(self):
        with pytest.raises(ValueError):
            logger_manager.set_level("LOUD")

    def test_host_sinks_survive_rebuild(self):
        from chartengine.logger import logger

        original = logger_manager.get_level()
        received = []
        host_sink = logger.add(lambda message: received.append(message.record["message"]), level="INFO")
        try:
            logger_manager.set_level("WARNING")
            logger.info("host message after rebuild")
        finally:
            logger_manager.set_level(original)
            logger.remove(host_sink)

        assert "host message after rebuild" in received

    def test_file_sink_off_by_default(self, monkeypatch, tmp_path):
        from chartengine.config.settings import LoggerConfig
        from chartengine.logger import LoggerManager, logger

        monkeypatch.delenv("LOGGER__FILE_ENABLED", raising=False)
        monkeypatch.chdir(tmp_path)

        manager = LoggerManager(LoggerConfig(remove_default_handler=False))
        try:
            assert manager.config.file_enabled is False
            assert len(manager._handler_ids) == 1
            assert not (tmp_path / "data").exists()
        finally:
            for handler_id in manager._handler_ids:
                logger.remove(handler_id)
