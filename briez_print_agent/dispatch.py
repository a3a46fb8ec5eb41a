"""
Print Dispatch
==============

Resolves a printer id, picks its transport and sends one payload. A
dispatch always returns a PrintResult; nothing raises past ``send``.
There are no retries here, callers decide whether to try again.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable

from .config import DISPATCH_TIMEOUT
from .escpos import format_test_page, format_order
from .exceptions import PrintAgentError
from .models import Printer, PrintJob, PrintResult, JobKind, ErrorReason, Order
from .registry import PrinterRegistry
from .transports import BaseTransport, select_transport

logger = logging.getLogger(__name__)


class Dispatcher:
    """
    Sends print jobs to printers known to a registry.

    Args:
        registry: printer lookup
        timeout: caller-facing bound for one send, in seconds
        transport_factory: printer -> transport (defaults to select_transport)
    """

    def __init__(self, registry: PrinterRegistry,
                 timeout: float = DISPATCH_TIMEOUT,
                 transport_factory: Callable[[Printer], BaseTransport] = select_transport):
        self.registry = registry
        self.timeout = timeout
        self.transport_factory = transport_factory
        self._pool = ThreadPoolExecutor(max_workers=8, thread_name_prefix='dispatch')

    def send(self, printer_id: str, payload: bytes, kind: JobKind = JobKind.RAW) -> PrintResult:
        """Send an already formatted payload to a printer."""
        job = PrintJob(printer_id=printer_id, payload=payload, kind=kind)

        try:
            printer = self.registry.require(printer_id)
            transport = self.transport_factory(printer)
        except PrintAgentError as e:
            logger.warning(f'{job.id}: {e}')
            result = PrintResult.fail(e.reason, str(e))
        else:
            logger.info(f'{job.id}: {job.kind.value} job, {job.size} bytes -> {printer.name} via {transport.describe()}')
            result = self._execute(transport, job)

        result.job_id = job.id
        return result

    def send_test_page(self, printer_id: str) -> PrintResult:
        """Format and print a test page."""
        try:
            printer = self.registry.require(printer_id)
        except PrintAgentError as e:
            logger.warning(f'Test page: {e}')
            return PrintResult.fail(e.reason, str(e))
        return self.send(printer_id, format_test_page(printer), JobKind.TEST)

    def send_order(self, printer_id: str, order: Order) -> PrintResult:
        """Format and print an order ticket."""
        return self.send(printer_id, format_order(order), JobKind.ORDER)

    def close(self) -> None:
        self._pool.shutdown(wait=False)

    def _execute(self, transport: BaseTransport, job: PrintJob) -> PrintResult:
        future = self._pool.submit(transport.send, job.payload)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError:
            # Nothing may reach the printer once the caller has been told it failed
            transport.cancel()
            logger.warning(f'{job.id}: no answer from {transport.describe()} after {self.timeout}s')
            return PrintResult.fail(
                ErrorReason.TRANSPORT_TIMEOUT,
                f'Print timeout after {self.timeout}s ({transport.describe()})',
            )
        except Exception as e:
            logger.exception(f'{job.id}: unexpected error sending to {transport.describe()}')
            return PrintResult.fail(ErrorReason.TRANSPORT_IO_ERROR, str(e))
