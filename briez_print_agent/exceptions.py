"""
Print Agent Exceptions
======================

Exception Hierarchy:
    PrintAgentError (base)
    ├── DiscoverySourceUnavailable - OS listing or interface lookup failed
    ├── PrinterNotFound            - unknown printer id
    ├── UnsupportedTransport       - no adapter can reach the printer
    └── TransportError             - adapter-level failure
        ├── TransportTimeout
        ├── TransportConnectionError
        └── TransportIOError

These never leave the core: discovery sources turn them into an empty
result plus a report, transports and the dispatcher turn them into a
failed PrintResult carrying ``reason``.
"""

from .models.job import ErrorReason


class PrintAgentError(Exception):
    """Base exception for all print agent errors."""

    reason = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DiscoverySourceUnavailable(PrintAgentError):
    """A discovery source could not enumerate printers."""

    reason = ErrorReason.DISCOVERY_SOURCE_UNAVAILABLE

    def __init__(self, source: str, message: str):
        super().__init__(f'{source}: {message}')
        self.source = source


class PrinterNotFound(PrintAgentError):
    reason = ErrorReason.PRINTER_NOT_FOUND

    def __init__(self, printer_id: str):
        super().__init__(f'Printer not found: {printer_id}')
        self.printer_id = printer_id


class UnsupportedTransport(PrintAgentError):
    reason = ErrorReason.UNSUPPORTED_TRANSPORT


class TransportError(PrintAgentError):
    reason = ErrorReason.TRANSPORT_IO_ERROR


class TransportTimeout(TransportError):
    reason = ErrorReason.TRANSPORT_TIMEOUT


class TransportConnectionError(TransportError):
    reason = ErrorReason.TRANSPORT_CONNECTION_ERROR


class TransportIOError(TransportError):
    reason = ErrorReason.TRANSPORT_IO_ERROR
