"""
Zuul Prometheus Exporter

Probes the /status endpoint of one or more Zuul scheduler hosts on every
Prometheus scrape and republishes their reachability as metrics.
"""

__version__ = '0.1.0'

__all__ = ['__version__']
