"""Shared pytest configuration and fixtures."""

import pytest

from zuul_exporter.exceptions import ProbeError
from zuul_exporter.hosts import ZuulHost


class FakeChecker:
    """Stands in for ZuulChecker; hosts named in `failing` are unreachable."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.calls = []
        self.closed = False

    def probe(self, host):
        self.calls.append(host.hostname)
        if host.hostname in self.failing:
            raise ProbeError(host, ConnectionError("connection refused"))
        return 200

    def close(self):
        self.closed = True


def samples_by_name(metrics):
    """Flatten metric families into {(sample_name, labels): value}."""
    return {
        (sample.name, tuple(sorted(sample.labels.items()))): sample.value
        for metric in metrics
        for sample in metric.samples
    }


@pytest.fixture
def hosts():
    return [
        ZuulHost('zuul01', '8001'),
        ZuulHost('zuul02', '8001'),
        ZuulHost('zuul03', '8001'),
    ]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('ZUUL_EXPORTER_LISTEN_ADDRESS', 'ZUUL_EXPORTER_TELEMETRY_PATH',
                 'ZUUL_LISTEN_ADDRESS_LIST', 'ZUUL_TIMEOUT', 'DEBUG'):
        monkeypatch.delenv(name, raising=False)
