"""
Briez Print Agent Discovery
===========================

Two sources of printers:

- local:   printers registered with the OS (wmic on Windows, lpstat on CUPS)
- network: thermal printers answering on port 9100 in the local /24
"""

from .base import Reporter, log_discovery_failure
from .local import discover_local, classify_port, parse_wmic_csv, parse_lpstat
from .network import discover_network, candidate_addresses, probe, get_local_ip

__all__ = [
    'Reporter', 'log_discovery_failure',
    'discover_local', 'classify_port', 'parse_wmic_csv', 'parse_lpstat',
    'discover_network', 'candidate_addresses', 'probe', 'get_local_ip',
]
