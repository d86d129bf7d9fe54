"""Tests for logging configuration"""
import logging
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

from config import Config
from logging_config import (
    setup_structured_logging,
    get_logger,
    log_server_startup,
    log_error
)


class TestLoggingConfig:
    """Test logging configuration and structured logging"""

    def test_setup_structured_logging(self):
        """Test structured logging setup"""
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "test.log"
            config = Config(log_file=log_file, log_level="DEBUG")

            setup_structured_logging(config)

            assert log_file.parent.exists()
            logger = logging.getLogger("test")
            assert logger.isEnabledFor(logging.DEBUG)

    def test_default_level_is_quiet(self):
        setup_structured_logging(Config(verbose=False))

        assert not logging.getLogger("test").isEnabledFor(logging.INFO)
        assert logging.getLogger("test").isEnabledFor(logging.WARNING)

    def test_verbose_enables_debug(self):
        setup_structured_logging(Config(verbose=True))

        assert logging.getLogger("test").isEnabledFor(logging.DEBUG)

    def test_log_file_receives_records(self):
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "proxy.log"
            setup_structured_logging(Config(log_file=log_file, log_level="INFO"))

            logging.getLogger("test").info("written to file")
            for handler in logging.getLogger().handlers:
                handler.flush()

            assert "written to file" in log_file.read_text()

            # release the file handler before the directory goes away
            for handler in list(logging.getLogger().handlers):
                handler.close()
                logging.getLogger().removeHandler(handler)

    def test_get_logger(self):
        """Test getting structured logger"""
        logger = get_logger("test_logger")

        assert logger is not None
        assert hasattr(logger, 'info')
        assert hasattr(logger, 'error')
        assert hasattr(logger, 'debug')
        assert hasattr(logger, 'warning')

    def test_log_server_startup(self):
        """Test structured server startup logging"""
        logger = get_logger("test")

        # This should not raise an exception
        log_server_startup(logger, Config(jwt_secret="secret", metric_prefix="app"))

    def test_log_error(self):
        """Test structured error logging"""
        logger = get_logger("test")
        error = ValueError("Test error")

        # This should not raise an exception
        log_error(logger, error, {"component": "test"})
        log_error(logger, error)

    def test_development_vs_production_logging(self):
        """Test different renderers for development vs production"""
        config = Config()

        with patch.dict(os.environ, {"ENVIRONMENT": "development"}):
            setup_structured_logging(config)
            get_logger("test").warning("Test development log")

        with patch.dict(os.environ, {"ENVIRONMENT": "production"}):
            setup_structured_logging(config)
            get_logger("test").warning("Test production log")

    def test_logger_context_binding(self):
        """Test logger context binding"""
        logger = get_logger("test")

        bound_logger = logger.bind(request_id="123")
        bound_logger.info("Test message with context")
