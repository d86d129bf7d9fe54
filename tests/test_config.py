"""Tests for configuration module"""
import os
import tempfile
from pathlib import Path
from unittest.mock import patch
import pytest
from pydantic import ValidationError

from config import Config


class TestConfig:
    """Test configuration validation and parsing"""

    def test_default_config(self):
        """Test default configuration values"""
        config = Config()

        assert config.http_host == "127.0.0.1"
        assert config.http_port == 80
        assert config.statsd_host == "127.0.0.1"
        assert config.statsd_port == 8125
        assert config.metric_prefix == ""
        assert config.jwt_secret is None
        assert config.verbose is False
        assert config.flush_interval == 2.0
        assert config.statsd_max_packet_size == 1432
        assert config.log_level == "WARNING"
        assert config.auth_enabled() is False
        assert config.tls_enabled() is False

    def test_environment_override(self):
        """Test configuration override from environment variables"""
        env_vars = {
            "HTTP_HOST": "0.0.0.0",
            "HTTP_PORT": "8080",
            "STATSD_HOST": "statsd.internal",
            "STATSD_PORT": "9125",
            "METRIC_PREFIX": "frontend",
            "JWT_SECRET": "secret",
            "VERBOSE": "true",
            "FLUSH_INTERVAL": "0.5",
            "LOG_LEVEL": "info",
        }

        with patch.dict(os.environ, env_vars):
            config = Config()

            assert config.http_host == "0.0.0.0"
            assert config.http_port == 8080
            assert config.statsd_host == "statsd.internal"
            assert config.statsd_port == 9125
            assert config.metric_prefix == "frontend."
            assert config.jwt_secret == "secret"
            assert config.verbose is True
            assert config.flush_interval == 0.5
            assert config.log_level == "INFO"
            assert config.auth_enabled() is True

    def test_init_arguments_override_environment(self):
        with patch.dict(os.environ, {"HTTP_PORT": "8080"}):
            config = Config(http_port=9000)

            assert config.http_port == 9000

    def test_metric_prefix_normalization(self):
        """Test that a non-empty prefix always ends with a separator"""
        assert Config(metric_prefix="app").metric_prefix == "app."
        assert Config(metric_prefix="app.").metric_prefix == "app."
        assert Config(metric_prefix="").metric_prefix == ""

    @pytest.mark.parametrize("prefix", ["app:", "app|c", "app\n", "my app", "app@"])
    def test_metric_prefix_rejects_statsd_delimiters(self, prefix):
        with pytest.raises(ValidationError):
            Config(metric_prefix=prefix)

    def test_build_key(self):
        assert Config(metric_prefix="app").build_key("clicks") == "app.clicks"
        assert Config(metric_prefix="").build_key("clicks") == "clicks"

    def test_empty_secret_disables_auth(self):
        with patch.dict(os.environ, {"JWT_SECRET": ""}):
            config = Config()

            assert config.jwt_secret is None
            assert config.auth_enabled() is False

    def test_validation_ports(self):
        """Test validation of ports"""
        with patch.dict(os.environ, {"HTTP_PORT": "0"}):
            with pytest.raises(ValidationError):
                Config()

        with patch.dict(os.environ, {"STATSD_PORT": "70000"}):
            with pytest.raises(ValidationError):
                Config()

    def test_validation_flush_interval(self):
        with pytest.raises(ValidationError):
            Config(flush_interval=0)

    def test_tls_requires_both_files(self):
        assert Config(tls_cert="/etc/ssl/proxy.crt").tls_enabled() is False
        assert Config(tls_cert="/etc/ssl/proxy.crt", tls_key="/etc/ssl/proxy.key").tls_enabled() is True

    def test_verbose_forces_debug(self):
        assert Config(verbose=True, log_level="ERROR").effective_log_level() == "DEBUG"
        assert Config(log_level="ERROR").effective_log_level() == "ERROR"

    def test_config_is_immutable(self):
        config = Config()

        with pytest.raises(ValidationError):
            config.metric_prefix = "other."

    def test_log_directory_creation(self):
        """Test that the parent directory is created for the log file"""
        with tempfile.TemporaryDirectory() as tmp_dir:
            log_file = Path(tmp_dir) / "subdir" / "proxy.log"

            with patch.dict(os.environ, {"LOG_FILE": str(log_file)}):
                config = Config()

                assert config.log_file == log_file
                assert log_file.parent.exists()
