"""
Tests for ssmigrate.logging_setup module.
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest
from rich.logging import RichHandler

from ssmigrate.config import LoggingConfig
from ssmigrate.logging_setup import configure_logging


@pytest.fixture(autouse=True)
def restore_package_logger():
    logger = logging.getLogger("ssmigrate")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)


class TestConfigureLogging:
    """Test logger configuration."""

    def test_defaults(self):
        logger = configure_logging()

        assert logger.name == "ssmigrate"
        assert logger.level == logging.WARNING
        assert [type(h) for h in logger.handlers] == [RichHandler]

    def test_debug_overrides_level(self):
        logger = configure_logging(LoggingConfig(level="ERROR"), debug=True)

        assert logger.level == logging.DEBUG

    def test_file_handler(self, tmp_path):
        log_file = tmp_path / "ssmigrate.log"
        config = LoggingConfig(level="INFO", file=str(log_file), max_size=1024, backup_count=2)

        logger = configure_logging(config)
        logging.getLogger("ssmigrate.schema.applier").info("applied change")
        for handler in logger.handlers:
            handler.flush()

        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024
        assert file_handlers[0].backupCount == 2
        assert "applied change" in log_file.read_text(encoding="utf-8")

    def test_reconfigure_replaces_handlers(self):
        configure_logging()
        logger = configure_logging()

        assert len(logger.handlers) == 1
