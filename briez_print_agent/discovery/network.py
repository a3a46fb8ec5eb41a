"""
Network Printer Discovery
=========================

Probes a handful of likely addresses in the local /24 for thermal printers
listening on the raw socket port. Only the configured host octets are
tried, not the whole subnet, to keep a refresh around one probe timeout.
"""

import logging
import socket
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Iterable

from .base import Reporter, log_discovery_failure
from ..config import PRINTER_PORT, PROBE_HOSTS, PROBE_TIMEOUT
from ..exceptions import DiscoverySourceUnavailable
from ..models import Printer

logger = logging.getLogger(__name__)

SOURCE = 'network'


def _usable(ip: Optional[str]) -> bool:
    return bool(ip) and not ip.startswith('127.') and ip != '0.0.0.0'


def _routed_ip() -> Optional[str]:
    """Source address the default route would use, or None without a route."""
    try:
        # UDP connect only selects a route, nothing is sent
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(('8.8.8.8', 80))
            return sock.getsockname()[0]
    except OSError as e:
        logger.debug(f'No default route: {e}')
        return None


def _hostname_ips() -> List[str]:
    """IPv4 addresses the host name resolves to (isolated LANs have no route)."""
    try:
        infos = socket.getaddrinfo(socket.gethostname(), None, socket.AF_INET)
    except OSError as e:
        logger.debug(f'Host name lookup failed: {e}')
        return []
    return [info[4][0] for info in infos]


def get_local_ip() -> str:
    """
    IPv4 address of the LAN interface.

    Uses the interface carrying the default route, then the addresses the
    host name resolves to.

    Raises:
        DiscoverySourceUnavailable: if there is no non-loopback IPv4 address
    """
    routed = _routed_ip()
    if _usable(routed):
        return routed

    for ip in _hostname_ips():
        if _usable(ip):
            return ip

    raise DiscoverySourceUnavailable(SOURCE, f'no usable network interface (got {routed!r})')


def candidate_addresses(local_ip: str, hosts: Iterable[int] = PROBE_HOSTS) -> List[str]:
    """Addresses to probe: ``hosts`` octets within the /24 of ``local_ip``."""
    subnet = '.'.join(local_ip.split('.')[:3])
    return [f'{subnet}.{host}' for host in hosts if 0 < host < 255]


def probe(address: str, port: int = PRINTER_PORT, timeout: float = PROBE_TIMEOUT) -> bool:
    """True if a TCP connection to ``address:port`` succeeds within ``timeout``."""
    try:
        with socket.create_connection((address, port), timeout=timeout):
            return True
    except OSError:
        return False


def discover_network(reporter: Reporter = log_discovery_failure,
                     hosts: Iterable[int] = PROBE_HOSTS,
                     port: int = PRINTER_PORT,
                     timeout: float = PROBE_TIMEOUT,
                     local_ip: Optional[str] = None) -> List[Printer]:
    """
    Probe candidate addresses concurrently and wait for all of them.

    Never raises for environment problems: returns [] and calls
    ``reporter(source, error)`` instead.
    """
    try:
        local_ip = local_ip or get_local_ip()
    except DiscoverySourceUnavailable as e:
        reporter(SOURCE, e)
        return []

    candidates = candidate_addresses(local_ip, hosts)
    if not candidates:
        return []

    with ThreadPoolExecutor(max_workers=len(candidates), thread_name_prefix='probe') as pool:
        reachable = list(pool.map(lambda address: probe(address, port, timeout), candidates))

    printers = [
        Printer.from_network(address, port)
        for address, is_open in zip(candidates, reachable)
        if is_open
    ]
    logger.debug(f'{len(printers)} network printer(s) in {local_ip}/24')
    return printers
