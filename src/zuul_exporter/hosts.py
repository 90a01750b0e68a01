"""
Zuul Host List Parsing

Turns the comma-separated `host:port` list given on the command line into an
ordered list of ZuulHost values. Any malformed entry is a configuration error;
the exporter refuses to start rather than silently dropping a host.

Accepted token forms:
    - zuul.example.com:8001
    - 10.0.0.5:8001
    - [2001:db8::1]:8001
"""
import logging
from typing import List, NamedTuple, Tuple

from zuul_exporter.exceptions import ConfigError

logger = logging.getLogger(__name__)


class ZuulHost(NamedTuple):
    hostname: str
    port: str

    @property
    def status_url(self) -> str:
        hostname = f"[{self.hostname}]" if ':' in self.hostname else self.hostname
        return f"http://{hostname}:{self.port}/status"


def split_host_port(address: str) -> Tuple[str, str]:
    """
    Split an address of the form host:port, [host]:port or :port.

    The split happens on the last colon. The host may be empty; callers that
    need a host must check for it.

    Raises:
        ConfigError: if the port is missing or not a valid TCP port number
    """
    if address.startswith('['):
        end = address.find(']')
        if end == -1:
            raise ConfigError(f"missing ']' in address {address!r}")
        host, rest = address[1:end], address[end + 1:]
        if not rest.startswith(':'):
            raise ConfigError(f"missing port in address {address!r}")
        port = rest[1:]
    else:
        host, sep, port = address.rpartition(':')
        if not sep:
            raise ConfigError(f"missing port in address {address!r}")
        if ':' in host:
            raise ConfigError(f"too many colons in address {address!r}")

    if not (port.isascii() and port.isdigit()) or not 0 < int(port) < 65536:
        raise ConfigError(f"invalid port {port!r} in address {address!r}")
    return host, port


def _valid_dns_name(hostname: str) -> bool:
    # Labels are 1-63 characters, the whole name at most 253; one trailing dot is allowed.
    name = hostname[:-1] if hostname.endswith('.') else hostname
    if not name or len(name) > 253:
        return False
    return all(0 < len(label) <= 63 for label in name.split('.'))


def parse_hosts(address_list: str) -> List[ZuulHost]:
    """
    Parse a comma-separated list of Zuul addresses.

    Args:
        address_list: e.g. 'zuul01:8001,zuul02:8001'

    Returns:
        ZuulHost entries in the order they were given

    Raises:
        ConfigError: if the list is empty or any entry is malformed
    """
    if not address_list or not address_list.strip():
        raise ConfigError("zuul.listen-address-list must be specified for collect metrics.")

    hosts = []
    for token in address_list.split(','):
        address = token.strip()
        try:
            hostname, port = split_host_port(address)
        except ConfigError as e:
            raise ConfigError(f"Bad zuul listen address {token!r}: {e}") from e
        if not hostname:
            raise ConfigError(f"Bad zuul listen address {token!r}: missing host")
        if ':' not in hostname and not _valid_dns_name(hostname):
            raise ConfigError(f"Bad zuul listen address {token!r}: invalid hostname")
        hosts.append(ZuulHost(hostname=hostname, port=port))

    logger.debug(f"Parsed {len(hosts)} zuul host(s): {', '.join(h.status_url for h in hosts)}")
    return hosts
