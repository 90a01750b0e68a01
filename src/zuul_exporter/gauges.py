"""
Prometheus Metrics Definitions Module - Zuul Exporter

Metric names and help strings shared by the collector, plus the build
information metric registered next to it.

Metrics:
    - zuul_up: Could the zuul server be reached
        Labels: host
        Values: 1 (reachable), 0 (unreachable)

    - zuul_exporter_scrape_failures_total: Scrape cycles with at least one
        unreachable host. Only exposed on a failing scrape.

    - zuul_version: The version of zuul server
        Declared only; the /status body is not parsed.

    - zuul_exporter_build_info: Exporter version and Python build context
        Labels: version, pythonversion, implementation
        Values: Always 1
"""
import platform

from prometheus_client import Info

from zuul_exporter import __version__

NAMESPACE = 'zuul'

ZUUL_UP = f'{NAMESPACE}_up'
ZUUL_UP_HELP = 'Could the zuul server be reached'

# CounterMetricFamily appends the _total suffix on exposition
SCRAPE_FAILURES = f'{NAMESPACE}_exporter_scrape_failures'
SCRAPE_FAILURES_HELP = 'Number of errors while scraping zuul.'

ZUUL_VERSION = f'{NAMESPACE}_version'
ZUUL_VERSION_HELP = 'The version of zuul server'


def build_info(registry):
    """Register zuul_exporter_build_info on the given registry."""
    info = Info(
        f'{NAMESPACE}_exporter_build',
        'A metric with a constant 1 value labeled by the exporter version and Python build context',
        registry=registry
    )
    info.info({
        'version': __version__,
        'pythonversion': platform.python_version(),
        'implementation': platform.python_implementation(),
    })
    return info


def build_context():
    return f"(python={platform.python_version()}, implementation={platform.python_implementation()}, platform={platform.platform()})"
