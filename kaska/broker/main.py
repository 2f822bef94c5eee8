#!/usr/bin/env python3
"""
Main entry point for running a Kaska broker.

Usage:
    python -m kaska.broker.main --port 1099
    python -m kaska.broker.main --config broker.yaml --log-format console
"""

import argparse
import signal
import sys
from typing import List, Optional

import yaml

from kaska.broker.server import BrokerServer
from kaska.broker.store import LogStore
from kaska.utils.config import Config
from kaska.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description='Kaska Broker - a minimal publish/subscribe message broker'
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='YAML configuration file'
    )

    parser.add_argument(
        '--host',
        type=str,
        default=None,
        help='Host to bind to (default: broker.host)'
    )

    parser.add_argument(
        '--port',
        type=int,
        default=None,
        help='Port to listen on (default: broker.port)'
    )

    parser.add_argument(
        '--service-name',
        type=str,
        default=None,
        help='Name clients resolve the broker by (default: broker.service_name)'
    )

    parser.add_argument(
        '--max-workers',
        type=int,
        default=None,
        help='Request thread pool size (default: broker.max_workers)'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default=None,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: logging.level)'
    )

    parser.add_argument(
        '--log-format',
        type=str,
        default=None,
        choices=['json', 'console'],
        help='Log output format (default: logging.format)'
    )

    return parser.parse_args(argv)


def build_server(args: argparse.Namespace, config: Config) -> BrokerServer:
    """Create a broker server from arguments, falling back to configuration."""
    def pick(value, key):
        return value if value is not None else config.get(key)

    return BrokerServer(
        store=LogStore(),
        host=pick(args.host, "broker.host"),
        port=int(pick(args.port, "broker.port")),
        service_name=pick(args.service_name, "broker.service_name"),
        max_workers=int(pick(args.max_workers, "broker.max_workers")),
    )


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = Config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Broker exception: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(
        log_level=args.log_level or config.get("logging.level"),
        log_format=args.log_format or config.get("logging.format"),
        log_output=config.get("logging.output"),
    )

    try:
        server = build_server(args, config)
        server.start()
    except Exception as e:
        logger.error("Broker startup failed", error=str(e), exc_info=True)
        sys.exit(1)

    def shutdown(signum, frame):
        logger.info("Received signal, shutting down", signal=signum)
        server.stop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        signal.signal(sig, shutdown)

    logger.info(
        "Broker started successfully",
        address=server.endpoint(),
        service_name=server.service_name,
    )

    server.wait_for_termination()
    logger.info("Broker stopped")


if __name__ == '__main__':
    main()
