"""Shared test configuration for the appstandard_lite test suite."""

import logging
from collections.abc import Generator
from typing import Any

import pytest


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None, Any, None]:
    """Restore root logger level and handlers changed by logging tests."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    root.setLevel(level)
    root.handlers[:] = handlers


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast unit tests")
    config.addinivalue_line("markers", "fast: Tests that complete in well under a second")
