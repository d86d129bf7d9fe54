"""Configuration management for StatsD HTTP Proxy"""
import re
from pathlib import Path
from typing import Literal, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Process configuration, read once at startup from environment and CLI overrides"""

    model_config = SettingsConfigDict(env_prefix="", case_sensitive=False, frozen=True)

    # HTTP server
    http_host: str = Field(default="127.0.0.1", description="HTTP host")
    http_port: int = Field(default=80, ge=1, le=65535, description="HTTP port")
    tls_cert: Optional[Path] = Field(default=None, description="TLS certificate to enable HTTPS")
    tls_key: Optional[Path] = Field(default=None, description="TLS private key to enable HTTPS")

    # StatsD transport
    statsd_host: str = Field(default="127.0.0.1", description="StatsD host")
    statsd_port: int = Field(default=8125, ge=1, le=65535, description="StatsD port")
    flush_interval: float = Field(default=2.0, ge=0.1, description="Buffer flush interval in seconds")
    statsd_max_packet_size: int = Field(default=1432, ge=64, description="Max UDP datagram size in bytes")
    statsd_max_buffer_lines: int = Field(default=10000, ge=1, description="Max buffered lines before dropping")

    # Metrics
    metric_prefix: str = Field(default="", description="Prefix of metric name")

    # Auth
    jwt_secret: Optional[str] = Field(default=None, description="Secret to verify JWT")

    # Logging
    verbose: bool = Field(default=False, description="Verbose logging")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="WARNING", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Log file path")
    enable_request_logging: bool = Field(default=True, description="Enable HTTP request logging")

    # Service settings
    service_name: str = Field(default="statsd-http-proxy", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")

    @field_validator('metric_prefix')
    @classmethod
    def normalize_metric_prefix(cls, v):
        """Make a non-empty prefix end with the key separator"""
        if re.search(r"[:|@\s]", v):
            raise ValueError("metric prefix must not contain ':', '|', '@' or whitespace")
        if v and not v.endswith('.'):
            return v + '.'
        return v

    @field_validator('jwt_secret', 'tls_cert', 'tls_key', mode='before')
    @classmethod
    def empty_as_none(cls, v):
        if v == "":
            return None
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def upper_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator('log_file')
    @classmethod
    def ensure_log_directory(cls, v):
        """Ensure parent directory exists for the log file"""
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v

    def auth_enabled(self) -> bool:
        """Check if token validation is configured"""
        return bool(self.jwt_secret)

    def tls_enabled(self) -> bool:
        """Check if both TLS certificate and key are configured"""
        return self.tls_cert is not None and self.tls_key is not None

    def effective_log_level(self) -> str:
        """Log level after applying the verbose flag"""
        return "DEBUG" if self.verbose else self.log_level

    def build_key(self, key: str) -> str:
        """Prepend the configured prefix to a metric key"""
        return self.metric_prefix + key
