"""Pytest Configuration and Shared Fixtures

This file is automatically loaded by pytest and makes all fixtures available to all tests.
"""
import os
import sys
from pathlib import Path

import pytest

# Keep test runs from writing log files
os.environ.setdefault("LOGGER__FILE_ENABLED", "false")

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Import all fixture modules to register them
pytest_plugins = [
    "tests.fixtures.ohlc_data",
]


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: Pure calculation tests (fast)"
    )
    config.addinivalue_line(
        "markers",
        "integration: Chart session tests across registry, layout and axis sync"
    )
    config.addinivalue_line(
        "markers",
        "e2e: End-to-end scenarios and CLI runs"
    )
    config.addinivalue_line(
        "markers",
        "slow: Slow-running tests (skip with -m 'not slow')"
    )


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)
        if f"{os.sep}integration{os.sep}" in path:
            item.add_marker(pytest.mark.integration)
        if f"{os.sep}e2e{os.sep}" in path:
            item.add_marker(pytest.mark.e2e)


@pytest.fixture
def loguru_messages():
    """Capture loguru output (level, message) during a test."""
    from chartengine.logger import logger

    messages = []
    handler_id = logger.add(
        lambda message: messages.append((message.record["level"].name, message.record["message"])),
        level="DEBUG",
    )
    yield messages
    logger.remove(handler_id)
