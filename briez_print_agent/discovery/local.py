"""
Local Printer Discovery
=======================

Lists printers registered with the operating system.

Windows: ``wmic printer get name,portname,status /format:csv``
POSIX:   ``lpstat -v`` (device URI per queue) and ``lpstat -p`` (queue state)

The port descriptor decides the transport:
    IP_192.168.0.50            -> network, port 9100
    192.168.0.50:9101          -> network, port 9101
    socket://192.168.0.50:9100 -> network, port 9100
    ipp://192.168.0.50/ipp     -> network, no raw port (spooler only)
    COM3, serial:/dev/ttyS0    -> serial
    anything else              -> usb (local queue)
"""

import ipaddress
import logging
import os
import re
import subprocess
import sys
from typing import List, Optional, Tuple, Dict

from .base import Reporter, log_discovery_failure
from ..config import PRINTER_PORT, COMMAND_TIMEOUT
from ..exceptions import DiscoverySourceUnavailable
from ..models import Printer, TransportKind, Availability, local_printer_id

logger = logging.getLogger(__name__)

SOURCE = 'local'

WMIC_COMMAND = ['wmic', 'printer', 'get', 'name,portname,status', '/format:csv']
LPSTAT_DEVICES_COMMAND = ['lpstat', '-v']
LPSTAT_PRINTERS_COMMAND = ['lpstat', '-p']

_WINDOWS_IP_PORT = re.compile(r'^IP_(\d{1,3}(?:\.\d{1,3}){3})', re.IGNORECASE)
_EMBEDDED_IP = re.compile(r'(?<![\d.])(\d{1,3}(?:\.\d{1,3}){3})(?::(\d{1,5}))?')
_SERIAL_PORT = re.compile(r'^(COM\d+|serial:|/dev/tty)', re.IGNORECASE)
_URI_SCHEME = re.compile(r'^([a-z][a-z0-9+.-]*)://', re.IGNORECASE)
_RAW_SCHEMES = ('socket', 'tcp')

_LPSTAT_DEVICE = re.compile(r'^device for (.+?):\s*(\S.*)$')
_LPSTAT_PRINTER = re.compile(r'^printer (\S+) (.*)$')


def _valid_ip(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
        return True
    except ValueError:
        return False


def classify_port(port_name: str) -> Tuple[TransportKind, Optional[str], Optional[int]]:
    """
    Work out transport, address and port from an OS port descriptor.

    Returns:
        (transport kind, IP address or None, TCP port or None)
    """
    port_name = (port_name or '').strip()

    match = _WINDOWS_IP_PORT.match(port_name)
    if match and _valid_ip(match.group(1)):
        return TransportKind.NETWORK, match.group(1), PRINTER_PORT

    if _SERIAL_PORT.match(port_name):
        return TransportKind.SERIAL, None, None

    match = _EMBEDDED_IP.search(port_name)
    if match and _valid_ip(match.group(1)):
        # ipp://, lpd://, http:// queues speak their own protocol: no raw port
        scheme = _URI_SCHEME.match(port_name)
        if scheme and scheme.group(1).lower() not in _RAW_SCHEMES:
            return TransportKind.NETWORK, match.group(1), None
        port = PRINTER_PORT
        if match.group(2) and 0 < int(match.group(2)) < 65536:
            port = int(match.group(2))
        return TransportKind.NETWORK, match.group(1), port

    return TransportKind.USB, None, None


def _local_printer(name: str, port_name: str, online: bool) -> Printer:
    kind, address, port = classify_port(port_name)
    return Printer(
        id=local_printer_id(name),
        name=name,
        transport_kind=kind,
        address=address,
        port=port,
        os_handle=name,
        port_name=port_name,
        availability=Availability.ONLINE if online else Availability.OFFLINE,
    )


def parse_wmic_csv(output: str) -> List[Printer]:
    """
    Parse ``wmic ... /format:csv`` output.

    Columns are located by header name. Rows whose field count does not
    match the header (e.g. a comma inside a printer name) are skipped.

    Raises:
        DiscoverySourceUnavailable: if the header lacks a required column
    """
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        return []

    header = [column.strip().lower() for column in lines[0].split(',')]
    try:
        name_col = header.index('name')
        port_col = header.index('portname')
        status_col = header.index('status')
    except ValueError:
        raise DiscoverySourceUnavailable(SOURCE, f'unexpected wmic header: {lines[0]!r}')

    printers = []
    for row in lines[1:]:
        fields = row.split(',')
        if len(fields) != len(header):
            logger.debug(f'Skipping malformed wmic row: {row!r}')
            continue

        name = fields[name_col].strip()
        if not name:
            continue

        status = fields[status_col].strip()
        printers.append(_local_printer(name, fields[port_col].strip(), status in ('OK', '')))

    return printers


def parse_lpstat(devices_output: str, printers_output: str = '') -> List[Printer]:
    """
    Parse ``lpstat -v`` and ``lpstat -p`` output (C locale).

    A queue is offline when ``lpstat -p`` reports it disabled.
    """
    disabled = set()
    for line in printers_output.splitlines():
        match = _LPSTAT_PRINTER.match(line.strip())
        if match and 'disabled' in match.group(2):
            disabled.add(match.group(1))

    printers = []
    for line in devices_output.splitlines():
        match = _LPSTAT_DEVICE.match(line.strip())
        if not match:
            continue
        name, uri = match.group(1).strip(), match.group(2).strip()
        if name:
            printers.append(_local_printer(name, uri, name not in disabled))

    return printers


def _run(command: List[str], timeout: float) -> str:
    env: Dict[str, str] = {**os.environ, 'LC_ALL': 'C'}
    try:
        completed = subprocess.run(
            command, capture_output=True, text=True, errors='replace',
            timeout=timeout, env=env,
        )
    except subprocess.TimeoutExpired:
        raise DiscoverySourceUnavailable(SOURCE, f'{command[0]} timed out after {timeout}s')
    except OSError as e:
        raise DiscoverySourceUnavailable(SOURCE, f'{command[0]} could not be run: {e}')

    if completed.returncode != 0:
        message = (completed.stderr or '').strip()
        # lpstat exits 1 when no queue is configured
        if 'No destinations' in message:
            return ''
        raise DiscoverySourceUnavailable(SOURCE, f'{command[0]} exited with {completed.returncode}: {message}')

    return completed.stdout or ''


def discover_local(reporter: Reporter = log_discovery_failure,
                   platform: str = sys.platform,
                   timeout: float = COMMAND_TIMEOUT) -> List[Printer]:
    """
    List OS-registered printers.

    Never raises for environment problems: returns [] and calls
    ``reporter(source, error)`` instead.
    """
    try:
        if platform == 'win32':
            printers = parse_wmic_csv(_run(WMIC_COMMAND, timeout))
        else:
            printers = parse_lpstat(
                _run(LPSTAT_DEVICES_COMMAND, timeout),
                _run(LPSTAT_PRINTERS_COMMAND, timeout),
            )
    except DiscoverySourceUnavailable as e:
        reporter(SOURCE, e)
        return []

    logger.debug(f'{len(printers)} local printer(s)')
    return printers
