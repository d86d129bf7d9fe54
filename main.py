#!/usr/bin/env python3
"""Main entry point for StatsD HTTP Proxy"""
import argparse
import os
import sys
from typing import Any, Dict, List, Optional
import uvicorn
from config import Config
from app.server import ProxyServer
from logging_config import setup_structured_logging, get_logger, log_server_startup, log_error


# Build metadata is injected through the environment
VERSION = "1.0.0"
BUILD_NUMBER = os.getenv("BUILD_NUMBER", "Unknown")
BUILD_DATE = os.getenv("BUILD_DATE", "Unknown")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="statsd-http-proxy",
        description="HTTP to StatsD proxy"
    )
    parser.add_argument("--http-host", help="HTTP Host")
    parser.add_argument("--http-port", type=int, help="HTTP Port")
    parser.add_argument("--tls-cert", help="TLS certificate to enable HTTPS")
    parser.add_argument("--tls-key", help="TLS private key to enable HTTPS")
    parser.add_argument("--statsd-host", help="StatsD Host")
    parser.add_argument("--statsd-port", type=int, help="StatsD Port")
    parser.add_argument("--metric-prefix", help="Prefix of metric name")
    parser.add_argument("--jwt-secret", help="Secret to verify JWT")
    parser.add_argument("--verbose", action="store_true", default=None, help="Verbose")
    parser.add_argument("--version", action="store_true", help="Show version")
    return parser


def config_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Flags given on the command line, keyed by config field"""
    fields = (
        "http_host", "http_port", "tls_cert", "tls_key", "statsd_host",
        "statsd_port", "metric_prefix", "jwt_secret", "verbose",
    )
    return {name: getattr(args, name) for name in fields if getattr(args, name) is not None}


def version_string() -> str:
    return f"StatsD HTTP Proxy v.{VERSION}, build {BUILD_NUMBER} from {BUILD_DATE}"


def main(argv: Optional[List[str]] = None):
    """Main application entry point"""
    args = build_parser().parse_args(argv)

    if args.version:
        print(version_string())
        sys.exit(0)

    try:
        config = Config(**config_overrides(args))

        setup_structured_logging(config)
        logger = get_logger(__name__)
        log_server_startup(logger, config)

        server = ProxyServer(config)

        ssl_options = {}
        if config.tls_enabled():
            ssl_options = {
                "ssl_certfile": str(config.tls_cert),
                "ssl_keyfile": str(config.tls_key),
            }

        uvicorn.run(
            server.get_app(),
            host=config.http_host,
            port=config.http_port,
            log_config=None,  # We handle logging ourselves
            **ssl_options
        )

    except Exception as e:
        logger = get_logger(__name__)
        log_error(logger, e, {"component": "main", "phase": "startup"})
        sys.exit(1)


if __name__ == '__main__':
    main()
