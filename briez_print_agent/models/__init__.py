"""
Briez Print Agent Models
"""

from .printer import Printer, TransportKind, Availability, local_printer_id, network_printer_id
from .job import PrintJob, PrintResult, JobKind, ErrorReason
from .order import Order, OrderItem

__all__ = [
    'Printer', 'TransportKind', 'Availability', 'local_printer_id', 'network_printer_id',
    'PrintJob', 'PrintResult', 'JobKind', 'ErrorReason',
    'Order', 'OrderItem',
]
