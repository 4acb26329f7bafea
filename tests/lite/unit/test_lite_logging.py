"""Tests for appstandard_lite.lite_logging module."""

import logging
import os
from unittest.mock import patch

import pytest

from appstandard_lite.lite_logging import (
    CorrelationIdFilter,
    configure_lite_logging,
    get_logging_status,
    get_request_id,
    reset_logging_to_debug,
    set_request_id,
)

pytestmark = pytest.mark.unit


class TestConfigureLiteLogging:
    """Tests for configure_lite_logging function."""

    def test_default_production_mode(self):
        """Root and package loggers at INFO, library loggers suppressed."""
        level = configure_lite_logging()

        assert level == logging.INFO
        assert logging.getLogger().level == logging.INFO
        assert logging.getLogger("appstandard_lite").level == logging.INFO
        assert logging.getLogger("icalendar").level == logging.WARNING
        assert logging.getLogger("dateutil").level == logging.WARNING

    def test_debug_mode(self):
        configure_lite_logging(debug_mode=True)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("appstandard_lite.merge_engine").level == logging.DEBUG
        # Third-party loggers should still be suppressed
        assert logging.getLogger("icalendar").level == logging.WARNING

    def test_force_debug_overrides_debug_mode(self):
        configure_lite_logging(debug_mode=False, force_debug=True)

        assert logging.getLogger().level == logging.DEBUG

    def test_force_debug_false_wins_over_env(self):
        with patch.dict(os.environ, {"APPSTANDARD_DEBUG": "1"}):
            configure_lite_logging(force_debug=False)

        assert logging.getLogger().level == logging.INFO

    @patch.dict(os.environ, {"APPSTANDARD_DEBUG": "true"})
    def test_env_debug_override(self):
        configure_lite_logging(debug_mode=False)

        assert logging.getLogger().level == logging.DEBUG

    @patch.dict(os.environ, {"APPSTANDARD_LOG_LEVEL": "WARNING"})
    def test_env_log_level_override(self):
        assert configure_lite_logging() == logging.WARNING
        assert logging.getLogger().level == logging.WARNING

    @patch.dict(os.environ, {"APPSTANDARD_LOG_LEVEL": "LOUD"})
    def test_invalid_env_log_level_ignored(self):
        assert configure_lite_logging() == logging.INFO

    def test_correlation_filter_added_to_existing_handlers(self):
        handler = logging.StreamHandler()
        logging.getLogger().addHandler(handler)

        configure_lite_logging()
        configure_lite_logging()

        filters = [f for f in handler.filters if isinstance(f, CorrelationIdFilter)]
        assert len(filters) == 1


class TestRequestId:
    """Correlation id propagation."""

    def test_default_and_set(self):
        assert get_request_id() == "no-request-id"

        set_request_id("req-42")
        try:
            assert get_request_id() == "req-42"
        finally:
            set_request_id(None)

        assert get_request_id() == "no-request-id"

    def test_filter_stamps_record(self):
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        set_request_id("abc")
        try:
            assert CorrelationIdFilter().filter(record) is True
        finally:
            set_request_id(None)

        assert record.request_id == "abc"


def test_reset_logging_to_debug():
    configure_lite_logging()

    reset_logging_to_debug()

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("icalendar").level == logging.DEBUG
    assert logging.getLogger("appstandard_lite.share_bundle").level == logging.DEBUG


def test_get_logging_status():
    configure_lite_logging()

    status = get_logging_status()

    assert status["root"] == "INFO"
    assert status["appstandard_lite"] == "INFO"
    assert status["icalendar"] == "WARNING"
    assert set(status) == {"root", "appstandard_lite", "icalendar", "dateutil", "yaml"}
