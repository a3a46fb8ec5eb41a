"""
Tests for subnet probing.
"""

import socket
import time
from unittest.mock import Mock, MagicMock, patch

import pytest

from briez_print_agent.discovery import network
from briez_print_agent.discovery.network import candidate_addresses, probe, discover_network, get_local_ip
from briez_print_agent.exceptions import DiscoverySourceUnavailable
from briez_print_agent.models import TransportKind


def test_candidate_addresses_default_hosts():
    assert candidate_addresses('192.168.0.23') == [
        '192.168.0.100', '192.168.0.101', '192.168.0.102',
        '192.168.0.200', '192.168.0.201', '192.168.0.202',
        '192.168.0.150', '192.168.0.151',
    ]


def test_candidate_addresses_skip_invalid_octets():
    assert candidate_addresses('10.1.2.3', hosts=[0, 5, 255, 254]) == ['10.1.2.5', '10.1.2.254']


def test_probe_open_port(tcp_sink):
    assert probe(tcp_sink.host, tcp_sink.port, timeout=1) is True


def test_probe_closed_port(closed_port):
    assert probe('127.0.0.1', closed_port, timeout=1) is False


def test_discover_network_finds_listening_hosts(tcp_sink):
    printers = discover_network(hosts=[1, 2], port=tcp_sink.port, timeout=1, local_ip='127.0.0.9')

    assert len(printers) == 1
    printer = printers[0]
    assert printer.id == 'net-127-0-0-1'
    assert printer.address == '127.0.0.1'
    assert printer.port == tcp_sink.port
    assert printer.transport_kind == TransportKind.NETWORK


def test_discover_network_probes_concurrently():
    def slow_probe(address, port, timeout):
        time.sleep(0.3)
        return address.endswith('.100')

    started = time.monotonic()
    with patch.object(network, 'probe', side_effect=slow_probe):
        printers = discover_network(local_ip='192.168.0.5')
    elapsed = time.monotonic() - started

    assert [p.address for p in printers] == ['192.168.0.100']
    assert elapsed < 1.5


def test_discover_network_without_interface_reports():
    reporter = Mock()
    with patch.object(network, 'get_local_ip', side_effect=DiscoverySourceUnavailable('network', 'no interface')):
        assert discover_network(reporter=reporter) == []

    reporter.assert_called_once()
    assert reporter.call_args[0][0] == 'network'


def _udp_socket(ip):
    sock = MagicMock()
    sock.__enter__.return_value = sock
    sock.getsockname.return_value = (ip, 5000)
    return sock


def _addrinfo(*ips):
    return [(socket.AF_INET, socket.SOCK_STREAM, 6, '', (ip, 0)) for ip in ips]


def test_get_local_ip_uses_default_route():
    with patch.object(network.socket, 'socket', return_value=_udp_socket('192.168.0.23')):
        assert get_local_ip() == '192.168.0.23'


def test_get_local_ip_rejects_loopback():
    with patch.object(network.socket, 'socket', return_value=_udp_socket('127.0.0.1')), \
            patch.object(network.socket, 'getaddrinfo', return_value=_addrinfo('127.0.1.1')):
        with pytest.raises(DiscoverySourceUnavailable):
            get_local_ip()


def test_get_local_ip_without_route_uses_host_addresses():
    with patch.object(network.socket, 'socket', side_effect=OSError('Network is unreachable')), \
            patch.object(network.socket, 'getaddrinfo', return_value=_addrinfo('127.0.1.1', '10.0.5.12')):
        assert get_local_ip() == '10.0.5.12'


def test_get_local_ip_without_any_interface():
    with patch.object(network.socket, 'socket', side_effect=OSError('Network is unreachable')), \
            patch.object(network.socket, 'getaddrinfo', side_effect=socket.gaierror('no name')):
        with pytest.raises(DiscoverySourceUnavailable):
            get_local_ip()
