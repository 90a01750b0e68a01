"""
Exporter error types.

ConfigError and ListenerError are fatal at startup. ProbeError is absorbed by
the collector and surfaces only as metrics and log lines.
"""


class ZuulExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigError(ZuulExporterError):
    """Missing or malformed configuration (host list, listen address, paths)."""


class ProbeError(ZuulExporterError):
    """A Zuul host could not be reached."""

    def __init__(self, host, cause):
        self.host = host
        self.cause = cause
        super().__init__(f"{host.status_url}: {cause}")


class ListenerError(ZuulExporterError):
    """The metrics HTTP server could not bind its listen address."""
