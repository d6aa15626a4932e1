"""
Package logger: loguru sinks, runtime level control and repeat suppression
"""
import sys
import threading
import time
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Tuple

from loguru import logger

from chartengine.config import settings
from chartengine.config.settings import LoggerConfig


VALID_LEVELS = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

# Handler loguru installs on import
DEFAULT_HANDLER_ID = 0


class LogDeduplicationFilter:
    """Suppress records emitted again from the same source line within a window.

    A drag on a value axis or a parameter slider recomputes indicators many
    times per second, so one warning site can fire in bursts:

        12:01:58.268 | WARNING | chartengine.chart.session:222 - sma: rejected parameter 'period'
        12:01:58.270 | WARNING | chartengine.chart.session:222 - sma: rejected parameter 'period'  <- dropped

    Only the last ``max_history`` source locations are remembered.
    """

    def __init__(self, max_history: int = 5, time_threshold_seconds: float = 1.0):
        self.max_history = max_history
        self.time_threshold = time_threshold_seconds
        # (file path, line, last emitted at)
        self.recent_logs: Deque[Tuple[str, int, float]] = deque(maxlen=max_history)
        self._lock = threading.Lock()

    def __call__(self, record: Dict[str, Any]) -> bool:
        location = (record["file"].path, record["line"])
        now = time.time()

        with self._lock:
            for path, line, emitted_at in self.recent_logs:
                if (path, line) == location and now - emitted_at < self.time_threshold:
                    return False
            self.recent_logs.append((*location, now))
            return True


class LoggerManager:
    """Owns the loguru sinks for the package.

    The console sink stays at ``console_level`` so CLI tables are not
    interleaved with computation logs; the optional file sink follows the
    runtime level set through ``set_level``. Only loguru's default stderr
    handler and this manager's own sinks are ever removed, so sinks added
    by a host application survive.
    """

    def __init__(self, config: Optional[LoggerConfig] = None):
        self.config = config or settings.LOGGER
        self.current_level = self.config.default_level.upper()
        self.dedup_filter: Optional[LogDeduplicationFilter] = None
        if self.config.filter_enabled:
            self.dedup_filter = LogDeduplicationFilter(
                max_history=self.config.filter_max_history,
                time_threshold_seconds=self.config.filter_time_threshold_seconds,
            )
        self._handler_ids: List[int] = []
        if self.config.remove_default_handler:
            self._remove_handler(DEFAULT_HANDLER_ID)
        self.setup_logger()

    @staticmethod
    def _remove_handler(handler_id: int):
        try:
            logger.remove(handler_id)
        except ValueError:
            # Already removed by the host
            logger.debug(f"Log handler {handler_id} was already removed")

    def setup_logger(self):
        """(Re)install the console sink and, when enabled, the rotating file sink."""
        for handler_id in self._handler_ids:
            self._remove_handler(handler_id)
        self._handler_ids = [
            logger.add(
                sys.stderr,
                level=self.config.console_level.upper(),
                format=CONSOLE_FORMAT,
                colorize=True,
                backtrace=True,
                diagnose=False,
                filter=self.dedup_filter,
            )
        ]

        if self.config.file_enabled:
            log_file = Path(self.config.file_path)
            log_file.parent.mkdir(parents=True, exist_ok=True)
            self._handler_ids.append(logger.add(
                str(log_file),
                level=self.current_level,
                format=FILE_FORMAT,
                rotation=self.config.rotation,
                retention=self.config.retention,
                compression="zip",
                backtrace=True,
                diagnose=False,
                enqueue=True,
                filter=self.dedup_filter,
            ))

        logger.debug(f"Logging ready (file level {self.current_level}, "
                     f"file sink {'on' if self.config.file_enabled else 'off'})")

    def set_level(self, level: str) -> str:
        """
        Change the file sink level at runtime

        Args:
            level: One of VALID_LEVELS (case-insensitive)

        Returns:
            The normalized level

        Raises:
            ValueError: If level is invalid
        """
        normalized = level.upper()
        if normalized not in VALID_LEVELS:
            raise ValueError(f"Invalid level '{level}'. Choose from: {', '.join(VALID_LEVELS)}")

        previous, self.current_level = self.current_level, normalized
        self.setup_logger()
        logger.info(f"Log level changed from {previous} to {normalized}")
        return normalized

    def get_level(self) -> str:
        return self.current_level

    def get_available_levels(self) -> List[str]:
        return list(VALID_LEVELS)


# Global logger manager instance
logger_manager = LoggerManager()

__all__ = ["logger", "logger_manager", "LogDeduplicationFilter", "LoggerManager"]
