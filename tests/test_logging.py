"""
Tests for logging configuration module.
"""

import pytest
import logging
from io import StringIO

from atomix.atomic.loader import load
from atomix.core.logging_config import setup_logging, get_logger


def test_setup_logging_default():
    """Test setting up logging with default parameters."""
    stream = StringIO()
    setup_logging(level="INFO", stream=stream)

    get_logger("test").info("Test message")

    output = stream.getvalue()
    assert "Test message" in output
    assert "INFO" in output
    assert "atomix.test" in output


def test_setup_logging_custom_level():
    """Debug records are dropped at INFO and shown at DEBUG."""
    stream = StringIO()
    setup_logging(level="INFO", stream=stream)
    get_logger("test").debug("Hidden message")
    assert "Hidden message" not in stream.getvalue()

    setup_logging(level="DEBUG", stream=stream)
    get_logger("test").debug("Debug message")
    assert "Debug message" in stream.getvalue()


def test_setup_logging_custom_format():
    """Test setting up logging with custom format."""
    stream = StringIO()
    setup_logging(level="INFO", format_string="%(levelname)s - %(message)s", stream=stream)

    get_logger("test").info("Test message")

    assert "INFO - Test message" in stream.getvalue()


def test_get_logger():
    """Test getting a logger instance."""
    logger = get_logger("test.module")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "atomix.test.module"


def test_logger_hierarchy():
    """Module loggers live under the package namespace."""
    parent = get_logger("atomic")
    child = get_logger("atomic.loader")
    assert child.parent is parent


def test_load_reports_progress(master_file, caplog):
    """A load logs where it read from and what it built."""
    with caplog.at_level(logging.DEBUG, logger="atomix"):
        load(master_file)

    loader_records = [r for r in caplog.records if r.name == "atomix.atomic.loader"]
    messages = [r.getMessage() for r in loader_records]
    assert any("Loading atomic data from" in m for m in messages)
    assert any("lines records" in m for m in messages)
    assert all(r.levelno <= logging.INFO for r in caplog.records)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
