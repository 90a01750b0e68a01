"""
Zuul Prometheus Exporter - Main Entry Point

This exporter checks that the configured Zuul scheduler hosts answer on their
/status endpoint and exposes the result as Prometheus metrics. Hosts are
probed synchronously each time Prometheus scrapes the telemetry path; there is
no background schedule.

Flags (each falls back to an environment variable):
    - --web.listen-address (ZUUL_EXPORTER_LISTEN_ADDRESS, default ':9532')
    - --web.telemetry-path (ZUUL_EXPORTER_TELEMETRY_PATH, default '/metrics')
    - --zuul.listen-address-list (ZUUL_LISTEN_ADDRESS_LIST, required)
    - --zuul.timeout (ZUUL_TIMEOUT, probe timeout in seconds, default: none)
    - --log.level (default 'debug' when DEBUG is true, otherwise 'info')

Exit Codes:
    - 0: clean shutdown (interrupt)
    - 1: configuration error or the listen address could not be bound
    - 2: invalid command line (reported by argparse)

Functions:
    - parse_args: Command line parsing
    - load_config: Validate parsed flags into an ExporterConfig
    - create_registry: Build the registry holding the zuul collector
    - main: Entry point that wires everything and serves forever
"""
import argparse
import logging
import os
import sys
from dataclasses import dataclass
from typing import List, Optional

from prometheus_client import CollectorRegistry

from zuul_exporter import __version__
from zuul_exporter.exceptions import ConfigError, ListenerError
from zuul_exporter.gauges import build_context, build_info
from zuul_exporter.hosts import ZuulHost, parse_hosts, split_host_port
from zuul_exporter.web import make_app, make_exporter_server
from zuul_exporter.zuul_checker import ZuulChecker
from zuul_exporter.zuul_monitor import ZuulCollector

logger = logging.getLogger(__name__)

LOG_LEVELS = ('debug', 'info', 'warn', 'error', 'fatal')


@dataclass(frozen=True)
class ExporterConfig:
    listen_host: str
    listen_port: str
    telemetry_path: str
    hosts: List[ZuulHost]
    timeout: Optional[float] = None
    address_list: str = ''


def default_log_level():
    debug_enabled = os.getenv('DEBUG', 'false').lower() in ('true', '1', 'yes', 'on')
    return 'debug' if debug_enabled else 'info'


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='zuul_exporter',
        description='Export Zuul scheduler reachability as Prometheus metrics.'
    )
    parser.add_argument(
        '--web.listen-address', dest='listen_address',
        default=os.getenv('ZUUL_EXPORTER_LISTEN_ADDRESS', ':9532'),
        help='The address on which to expose the web interface and generated Prometheus metrics.'
    )
    parser.add_argument(
        '--web.telemetry-path', dest='telemetry_path',
        default=os.getenv('ZUUL_EXPORTER_TELEMETRY_PATH', '/metrics'),
        help='Path under which to expose metrics.'
    )
    parser.add_argument(
        '--zuul.listen-address-list', dest='address_list',
        default=os.getenv('ZUUL_LISTEN_ADDRESS_LIST', ''),
        help='The zuul list addresses (comma-separated host:port).'
    )
    parser.add_argument(
        '--zuul.timeout', dest='timeout',
        default=os.getenv('ZUUL_TIMEOUT'),
        help='Timeout in seconds for each zuul probe. No timeout when unset.'
    )
    parser.add_argument(
        '--log.level', dest='log_level', choices=LOG_LEVELS,
        default=default_log_level(),
        help='Only log messages with the given severity or above.'
    )
    parser.add_argument(
        '--version', action='version', version=f'zuul_exporter {__version__}'
    )
    return parser.parse_args(argv)


def setup_logging(level_name):
    level = {'warn': logging.WARNING, 'fatal': logging.CRITICAL}.get(
        level_name, getattr(logging, level_name.upper(), logging.INFO))
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def _parse_timeout(value):
    if value is None or value == '':
        return None
    try:
        timeout = float(value)
    except ValueError:
        raise ConfigError(f"zuul.timeout must be a number of seconds, got {value!r}")
    if timeout <= 0:
        raise ConfigError(f"zuul.timeout must be positive, got {value!r}")
    return timeout


def load_config(args):
    """
    Validate parsed command line flags.

    Args:
        args: argparse namespace from parse_args

    Returns:
        ExporterConfig

    Raises:
        ConfigError: for an empty or malformed host list, listen address,
            telemetry path or timeout
    """
    hosts = parse_hosts(args.address_list)

    try:
        listen_host, listen_port = split_host_port(args.listen_address)
    except ConfigError as e:
        raise ConfigError(f"Bad web.listen-address: {e}") from e

    if not args.telemetry_path.startswith('/'):
        raise ConfigError(f"web.telemetry-path must start with '/', got {args.telemetry_path!r}")

    return ExporterConfig(
        listen_host=listen_host,
        listen_port=listen_port,
        telemetry_path=args.telemetry_path,
        hosts=hosts,
        timeout=_parse_timeout(args.timeout),
        address_list=args.address_list,
    )


def create_registry(hosts, timeout=None):
    """
    Build a dedicated registry holding the zuul collector and build info.

    Returns:
        (CollectorRegistry, ZuulCollector)
    """
    registry = CollectorRegistry()
    collector = ZuulCollector(hosts, checker=ZuulChecker(timeout=timeout))
    registry.register(collector)
    build_info(registry)
    return registry, collector


def main(argv=None):
    """
    Main entry point for the exporter.
    """
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        config = load_config(args)
    except ConfigError as e:
        logger.critical(str(e))
        return 1

    registry, collector = create_registry(config.hosts, config.timeout)

    logger.info(f"Starting Zuul -> Prometheus Exporter (version={__version__})")
    logger.info(f"Build context {build_context()}")
    logger.info(f"Accepting zuul address: {config.address_list}")
    if config.timeout is None:
        logger.warning("No zuul probe timeout configured; an unresponsive host stalls every scrape")

    try:
        server = make_exporter_server(
            make_app(registry, config.telemetry_path),
            config.listen_host,
            config.listen_port
        )
    except ListenerError as e:
        logger.critical(str(e))
        collector.close()
        return 1

    logger.info(f"Accepting Prometheus Requests on {args.listen_address}{config.telemetry_path}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
    finally:
        server.server_close()
        collector.close()
        logger.info("Exporter stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
