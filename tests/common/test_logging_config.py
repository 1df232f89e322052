"""
Tests for the logging configuration helpers.
"""

import json
import logging
from unittest.mock import patch

import pytest

from affilNet.common.logging_config import (
    ROOT_LOGGER_NAME,
    JSONFormatter,
    LoggingTimer,
    configure_external_library_logging,
    get_logger,
    setup_logging
)


@pytest.fixture
def clean_root_logger():
    """Restore the package logger after a test configured it."""
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    yield root_logger
    for handler in list(root_logger.handlers):
        handler.close()
    root_logger.handlers.clear()
    root_logger.propagate = True
    root_logger.setLevel(logging.NOTSET)


class TestSetupLogging:
    """Test setup_logging."""

    def test_level_from_argument(self, clean_root_logger):
        logger = setup_logging(level="DEBUG", console=True, force_setup=True)

        assert logger is clean_root_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_level_from_environment(self, clean_root_logger):
        with patch.dict("os.environ", {"AFFILNET_LOG_LEVEL": "WARNING"}):
            logger = setup_logging(force_setup=True)

        assert logger.level == logging.WARNING

    def test_invalid_level(self, clean_root_logger):
        with pytest.raises(ValueError, match="Invalid logging level"):
            setup_logging(level="LOUD", force_setup=True)

    def test_second_call_is_noop(self, clean_root_logger):
        setup_logging(level="INFO", force_setup=True)
        setup_logging(level="DEBUG")

        assert clean_root_logger.level == logging.INFO
        assert len(clean_root_logger.handlers) == 1

    def test_log_dir_creates_file(self, clean_root_logger, tmp_path):
        setup_logging(level="INFO", console=False, log_dir=str(tmp_path), force_setup=True)
        get_logger("affilNet.test").info("window done")

        for handler in clean_root_logger.handlers:
            handler.flush()

        content = (tmp_path / "affilnet.log").read_text(encoding="utf-8")
        assert "window done" in content

    def test_module_loggers_use_root_handlers(self, clean_root_logger):
        setup_logging(level="WARNING", console=False, force_setup=True)
        logger = get_logger("affilNet.network.metrics")

        assert logger.name == "affilNet.network.metrics"
        assert logger.getEffectiveLevel() == logging.WARNING


class TestJSONFormatter:
    """Test JSONFormatter output."""

    def test_json_fields(self):
        record = logging.LogRecord(
            name="affilNet.timeseries", level=logging.INFO, pathname=__file__,
            lineno=1, msg="window %s", args=("1980-01-01",), exc_info=None
        )
        record.window = "1980-01-01"

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "window 1980-01-01"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "affilNet.timeseries"
        assert payload["window"] == "1980-01-01"


class TestHelpers:
    """Test the remaining logging helpers."""

    def test_external_library_levels(self):
        configure_external_library_logging({"networkit": "ERROR"})

        assert logging.getLogger("networkit").level == logging.ERROR

    def test_logging_timer_reports_duration(self):
        with patch("affilNet.common.logging_config.log_performance_metric") as metric:
            with LoggingTimer("compute_all_metrics", {"windows": 2}):
                pass

        metric.assert_called_once()
        operation, duration, details = metric.call_args[0]
        assert operation == "compute_all_metrics"
        assert duration >= 0
        assert details == {"windows": 2}
