"""Tests for the zuul reachability collector."""

import logging
import threading
import time

from prometheus_client import CollectorRegistry

from zuul_exporter.hosts import ZuulHost
from zuul_exporter.zuul_checker import ZuulChecker
from zuul_exporter.zuul_monitor import ZuulCollector

from conftest import FakeChecker, samples_by_name

FAILURES = 'zuul_exporter_scrape_failures_total'


def up(hostname):
    return ('zuul_up', (('host', hostname),))


def test_collect_all_hosts_reachable(hosts):
    checker = FakeChecker()
    collector = ZuulCollector(hosts, checker=checker)

    samples = samples_by_name(collector.collect())

    assert samples == {up('zuul01'): 1, up('zuul02'): 1, up('zuul03'): 1}
    assert collector.scrape_failures == 0
    assert checker.calls == ['zuul01', 'zuul02', 'zuul03']


def test_collect_aborts_on_first_failure(hosts, caplog):
    checker = FakeChecker(failing={'zuul02'})
    collector = ZuulCollector(hosts, checker=checker)

    with caplog.at_level(logging.ERROR):
        samples = samples_by_name(collector.collect())

    assert samples == {up('zuul01'): 1, up('zuul02'): 0, (FAILURES, ()): 1}
    assert checker.calls == ['zuul01', 'zuul02']
    assert collector.scrape_failures == 1
    assert 'Error scraping zuul' in caplog.text


def test_failure_counter_increments_once_per_cycle(hosts):
    collector = ZuulCollector(hosts, checker=FakeChecker(failing={'zuul01', 'zuul03'}))

    for _ in range(3):
        samples = samples_by_name(collector.collect())

    assert samples[(FAILURES, ())] == 3
    assert collector.scrape_failures == 3


def test_failure_counter_only_exposed_on_failing_cycle(hosts):
    checker = FakeChecker(failing={'zuul03'})
    collector = ZuulCollector(hosts, checker=checker)
    collector.collect()

    checker.failing.clear()
    samples = samples_by_name(collector.collect())

    assert (FAILURES, ()) not in samples
    assert collector.scrape_failures == 1


def test_cycles_do_not_leak_results(hosts):
    checker = FakeChecker(failing={'zuul01'})
    collector = ZuulCollector(hosts, checker=checker)

    first = samples_by_name(collector.collect())
    checker.failing.clear()
    second = samples_by_name(collector.collect())

    assert first == {up('zuul01'): 0, (FAILURES, ()): 1}
    assert second == {up('zuul01'): 1, up('zuul02'): 1, up('zuul03'): 1}
    assert checker.calls == ['zuul01', 'zuul01', 'zuul02', 'zuul03']


def test_describe_does_not_probe(hosts):
    checker = FakeChecker()
    collector = ZuulCollector(hosts, checker=checker)

    names = [m.name for m in collector.describe()]

    assert names == ['zuul_up', 'zuul_exporter_scrape_failures', 'zuul_version']
    assert [m.name for m in collector.describe()] == names
    assert all(not m.samples for m in collector.describe())
    assert checker.calls == []


def test_register_does_not_probe(hosts):
    checker = FakeChecker()
    registry = CollectorRegistry()

    registry.register(ZuulCollector(hosts, checker=checker))

    assert checker.calls == []


def test_registry_exposes_samples(hosts):
    registry = CollectorRegistry()
    registry.register(ZuulCollector(hosts, checker=FakeChecker(failing={'zuul03'})))

    assert registry.get_sample_value('zuul_up', {'host': 'zuul03'}) == 0
    assert registry.get_sample_value('zuul_version') is None


def test_hosts_fixed_after_construction(hosts):
    collector = ZuulCollector(hosts)
    hosts.append(hosts[0])

    assert len(collector.hosts) == 3


class BlockingChecker:
    """Blocks every probe until released and records probe overlap."""

    def __init__(self):
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = []
        self.active = 0
        self.max_active = 0
        self._guard = threading.Lock()

    def probe(self, host):
        with self._guard:
            self.calls.append(host.hostname)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.entered.set()
        self.release.wait(5)
        with self._guard:
            self.active -= 1
        return 200


def test_concurrent_collects_are_serialized(hosts):
    checker = BlockingChecker()
    collector = ZuulCollector(hosts, checker=checker)
    results = []

    def scrape():
        results.append(samples_by_name(collector.collect()))

    first = threading.Thread(target=scrape)
    first.start()
    assert checker.entered.wait(5)

    checker.entered.clear()
    second = threading.Thread(target=scrape)
    second.start()
    time.sleep(0.2)

    # The second scrape is waiting on the lock, not probing.
    assert not checker.entered.is_set()
    assert checker.calls == ['zuul01']

    checker.release.set()
    first.join(5)
    second.join(5)

    assert checker.max_active == 1
    assert checker.calls == ['zuul01', 'zuul02', 'zuul03'] * 2
    assert len(results) == 2
    assert results[0] == results[1]


def test_close_releases_checker(hosts):
    checker = FakeChecker()
    collector = ZuulCollector(hosts, checker=checker)

    collector.close()

    assert checker.closed


def test_unparsable_hostname_counts_as_unreachable(caplog):
    hostname = 'a' * 70
    collector = ZuulCollector([ZuulHost(hostname, '8001')], checker=ZuulChecker(timeout=1))

    with caplog.at_level(logging.ERROR):
        samples = samples_by_name(collector.collect())
    collector.close()

    assert samples == {up(hostname): 0, (FAILURES, ()): 1}
    assert 'Error scraping zuul' in caplog.text
