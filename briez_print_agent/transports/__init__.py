"""
Briez Print Agent Transports
============================

How a payload reaches a printer.
"""

from .base import BaseTransport
from .network import NetworkTransport
from .spooler import SpoolerTransport
from .serial import SerialTransport
from ..exceptions import UnsupportedTransport
from ..models import Printer, TransportKind

__all__ = ['BaseTransport', 'NetworkTransport', 'SpoolerTransport', 'SerialTransport', 'select_transport']


def select_transport(printer: Printer) -> BaseTransport:
    """
    Pick the transport for a printer.

    Network printers with an address and a raw port go over a socket.
    Anything else the OS knows by name (USB, IPP/LPD queues) goes through
    the spooler. Remaining serial printers get the serial transport.

    Raises:
        UnsupportedTransport: if nothing can reach the printer
    """
    raw_socket = printer.port or not printer.os_handle
    if printer.transport_kind == TransportKind.NETWORK and printer.address and raw_socket:
        return NetworkTransport(printer.address, printer.port)
    if printer.os_handle:
        return SpoolerTransport(printer.os_handle)
    if printer.transport_kind == TransportKind.SERIAL:
        return SerialTransport(printer.port_name)
    raise UnsupportedTransport(f'No transport available for printer {printer.id} ({printer.transport_kind.value})')
