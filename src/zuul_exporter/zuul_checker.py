"""
Zuul Reachability Checking Module

Issues the per-host probe used by the collector: a plain GET against
http://{hostname}:{port}/status on a shared requests session.

A host counts as reachable as soon as the server answers. The status code is
not inspected and the response body is never read (the request is streamed
and closed immediately), so the version reported by /status is not extracted.

Error Handling:
    - No retries: the adapter is mounted with max_retries=0
    - No timeout unless one is configured
    - No proxy: HTTP_PROXY and friends are ignored
    - Every requests.RequestException (DNS failure, connection refused,
      timeout, ...) and every URL urllib3 cannot parse is re-raised as
      ProbeError
"""
import logging
import time

import requests
from requests.adapters import HTTPAdapter
from urllib3.exceptions import LocationValueError

from zuul_exporter import __version__
from zuul_exporter.exceptions import ProbeError

logger = logging.getLogger(__name__)

USER_AGENT = f'ZuulExporter/{__version__}'


def create_session():
    """
    Create a requests session for probing Zuul hosts.

    Returns:
        requests.Session object with retries and proxies disabled
    """
    session = requests.Session()
    adapter = HTTPAdapter(max_retries=0)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({'User-Agent': USER_AGENT})
    # Probes always connect directly, ignoring HTTP_PROXY and friends.
    session.trust_env = False
    return session


class ZuulChecker:
    """Shared HTTP client reused by every probe of every scrape."""

    def __init__(self, session=None, timeout=None):
        self.session = session if session is not None else create_session()
        self.timeout = timeout

    def probe(self, host):
        """
        Check that a Zuul host answers on /status.

        Args:
            host: ZuulHost to probe

        Returns:
            HTTP status code of the response

        Raises:
            ProbeError: if the request could not be completed
        """
        url = host.status_url
        start_time = time.time()
        try:
            response = self.session.get(url, timeout=self.timeout, stream=True)
        except (requests.exceptions.RequestException, LocationValueError) as e:
            raise ProbeError(host, e) from e

        response.close()
        logger.debug(f"{url}: HTTP {response.status_code} in {time.time() - start_time:.3f}s")
        return response.status_code

    def close(self):
        self.session.close()
