"""
Zuul Monitoring Collector Module

Custom Prometheus collector that probes every configured Zuul host each time
the registry is scraped.

Process Flow (one scrape cycle):
    1. Acquire the scrape lock; concurrent scrapes queue behind it
    2. Probe each host in configuration order
    3. Reachable host: zuul_up{host=...} = 1
    4. Unreachable host: zuul_up{host=...} = 0, skip the remaining hosts,
       log the error, increment the failure counter and expose it
    5. Release the lock and hand the fresh samples to the registry

Nothing is carried over between cycles: every scrape builds new metric
families from the probes it just made.
"""
import logging
import threading

from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily

from zuul_exporter.exceptions import ProbeError
from zuul_exporter.gauges import (SCRAPE_FAILURES, SCRAPE_FAILURES_HELP,
                                  ZUUL_UP, ZUUL_UP_HELP,
                                  ZUUL_VERSION, ZUUL_VERSION_HELP)
from zuul_exporter.zuul_checker import ZuulChecker

logger = logging.getLogger(__name__)


class ZuulCollector:
    """
    Reachability collector for a fixed list of Zuul hosts.

    Args:
        hosts: ZuulHost entries, fixed for the lifetime of the collector
        checker: ZuulChecker used for every probe (a new one is created if omitted);
            close() releases it
    """

    def __init__(self, hosts, checker=None):
        self.hosts = tuple(hosts)
        self.checker = checker if checker is not None else ZuulChecker()
        self._lock = threading.Lock()
        self._scrape_failures = 0

    @property
    def scrape_failures(self):
        return self._scrape_failures

    def close(self):
        """Release the HTTP session of the checker."""
        self.checker.close()

    def _up_family(self):
        return GaugeMetricFamily(ZUUL_UP, ZUUL_UP_HELP, labels=['host'])

    def _failures_family(self, value=None):
        return CounterMetricFamily(SCRAPE_FAILURES, SCRAPE_FAILURES_HELP, value=value)

    def describe(self):
        return [
            self._up_family(),
            self._failures_family(),
            GaugeMetricFamily(ZUUL_VERSION, ZUUL_VERSION_HELP),
        ]

    def _probe_hosts(self, up):
        # Stops at the first unreachable host; later hosts get no sample this cycle.
        for host in self.hosts:
            try:
                self.checker.probe(host)
            except ProbeError:
                up.add_metric([host.hostname], 0)
                raise
            up.add_metric([host.hostname], 1)

    def collect(self):
        with self._lock:
            up = self._up_family()
            metrics = [up]
            try:
                self._probe_hosts(up)
            except ProbeError as e:
                logger.error(f"Error scraping zuul: {e}")
                self._scrape_failures += 1
                metrics.append(self._failures_family(self._scrape_failures))
            else:
                logger.debug(f"Scraped {len(self.hosts)} zuul host(s)")
            return metrics
