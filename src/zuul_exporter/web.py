"""
Metrics HTTP Surface

WSGI application exposing the registry on the telemetry path and a small HTML
landing page everywhere else, plus the threaded server that runs it. Each
request is handled on its own thread; the collector serializes the scrapes.
"""
import logging
import socket
from socketserver import ThreadingMixIn
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from zuul_exporter.exceptions import ListenerError

logger = logging.getLogger(__name__)

LANDING_PAGE = """<html>
<head><title>Zuul Exporter</title></head>
<body>
<h1>Zuul Exporter</h1>
<p><a href="{telemetry_path}">Metrics</a></p>
</body>
</html>
"""


class ThreadingWSGIServer(ThreadingMixIn, WSGIServer):
    daemon_threads = True


class ThreadingWSGIServerV6(ThreadingWSGIServer):
    address_family = socket.AF_INET6


class LoggingRequestHandler(WSGIRequestHandler):
    """Send access log lines to the module logger instead of stderr."""

    def log_message(self, format, *args):
        logger.debug(f"{self.address_string()} - {format % args}")


def make_app(registry, telemetry_path='/metrics'):
    """
    Build the exporter WSGI application.

    Args:
        registry: CollectorRegistry holding the zuul collector
        telemetry_path: path serving the Prometheus exposition

    Returns:
        WSGI callable
    """
    landing_page = LANDING_PAGE.format(telemetry_path=telemetry_path).encode('utf-8')

    def app(environ, start_response):
        if environ.get('PATH_INFO', '/') == telemetry_path:
            output = generate_latest(registry)
            start_response('200 OK', [('Content-Type', CONTENT_TYPE_LATEST)])
            return [output]

        start_response('200 OK', [('Content-Type', 'text/html; charset=utf-8')])
        return [landing_page]

    return app


def make_exporter_server(app, host, port):
    """
    Bind the metrics server.

    Raises:
        ListenerError: if the address cannot be bound
    """
    server_class = ThreadingWSGIServerV6 if ':' in host else ThreadingWSGIServer
    try:
        return make_server(host, int(port), app,
                           server_class=server_class,
                           handler_class=LoggingRequestHandler)
    except OSError as e:
        raise ListenerError(f"cannot listen on {host}:{port}: {e}") from e
