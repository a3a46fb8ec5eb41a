"""
Printer Registry
================

Catalog of known printers: merges the local and network discovery sources
and caches the result for a TTL.

Refreshes are single-flight: while one refresh runs, every other caller
waits for its result instead of starting another subnet probe.
"""

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from functools import partial
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import CACHE_TTL, DISCOVERY_TIMEOUT
from .discovery import discover_local, discover_network
from .exceptions import PrinterNotFound
from .models import Printer

logger = logging.getLogger(__name__)

Source = Callable[[], List[Printer]]


@dataclass(frozen=True)
class DiscoverySnapshot:
    """Result of one refresh. Replaced whole, never modified."""

    printers: Tuple[Printer, ...] = ()
    produced_at: float = 0.0


def merge_printers(local: Sequence[Printer], network: Sequence[Printer]) -> List[Printer]:
    """
    Combine both sources.

    A probed printer whose address is already known to the OS is dropped:
    the OS record wins because it carries the spooler handle. Order is
    local printers first, then new network printers, whatever order the
    sources finished in.
    """
    merged: Dict[str, Printer] = {}
    known_addresses = set()

    for printer in local:
        if printer.id in merged:
            continue
        merged[printer.id] = printer
        if printer.address:
            known_addresses.add(printer.address)

    for printer in network:
        if printer.address in known_addresses or printer.id in merged:
            continue
        merged[printer.id] = printer
        known_addresses.add(printer.address)

    return list(merged.values())


class PrinterRegistry:
    """
    Cached, thread-safe view of the printers reachable from this host.

    Args:
        local_source: callable returning OS-registered printers
        network_source: callable returning probed network printers
        ttl: cache lifetime in seconds
        timeout: upper bound for one refresh in seconds
        clock: time source (seconds)
    """

    def __init__(self, local_source: Optional[Source] = None,
                 network_source: Optional[Source] = None,
                 ttl: float = CACHE_TTL,
                 timeout: float = DISCOVERY_TIMEOUT,
                 clock: Callable[[], float] = time.time):
        self.local_source = local_source or partial(discover_local, reporter=self.report_discovery_failure)
        self.network_source = network_source or partial(discover_network, reporter=self.report_discovery_failure)
        self.ttl = ttl
        self.timeout = timeout
        self.clock = clock

        self._snapshot = DiscoverySnapshot()
        self._lock = threading.Lock()
        self._inflight: Optional[Future] = None
        self._errors: Dict[str, str] = {}
        self._pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix='discovery')

    # =========================================================================
    # Public API
    # =========================================================================

    @property
    def snapshot(self) -> DiscoverySnapshot:
        return self._snapshot

    @property
    def discovery_errors(self) -> Dict[str, str]:
        """Failures reported during the latest refresh, by source."""
        with self._lock:
            return dict(self._errors)

    def list(self) -> List[Printer]:
        """All known printers, refreshed when the cache is stale or empty."""
        snapshot = self._snapshot
        if self._is_fresh(snapshot):
            return list(snapshot.printers)

        with self._lock:
            snapshot = self._snapshot
            if self._is_fresh(snapshot):
                return list(snapshot.printers)
            flight = self._inflight
            leader = flight is None
            if leader:
                flight = Future()
                self._inflight = flight

        if leader:
            try:
                snapshot = self._refresh()
            finally:
                with self._lock:
                    self._inflight = None
                flight.set_result(snapshot)

        return list(flight.result().printers)

    def get(self, printer_id: str) -> Optional[Printer]:
        """Printer with this id, or None."""
        for printer in self.list():
            if printer.id == printer_id:
                return printer
        return None

    def require(self, printer_id: str) -> Printer:
        """
        Printer with this id.

        Raises:
            PrinterNotFound: if no printer has this id
        """
        printer = self.get(printer_id)
        if printer is None:
            raise PrinterNotFound(printer_id)
        return printer

    def report_discovery_failure(self, source: str, error: Exception) -> None:
        """Reporter handed to the discovery sources."""
        logger.warning(f'Discovery source "{source}" unavailable: {error}')
        with self._lock:
            self._errors[source] = str(error)

    def close(self) -> None:
        self._pool.shutdown(wait=False)

    # =========================================================================
    # Refresh
    # =========================================================================

    def _is_fresh(self, snapshot: DiscoverySnapshot) -> bool:
        return bool(snapshot.printers) and self.clock() - snapshot.produced_at < self.ttl

    def _refresh(self) -> DiscoverySnapshot:
        """Run both sources concurrently; keep the old snapshot on failure."""
        with self._lock:
            self._errors = {}

        started = time.monotonic()
        local_future = self._pool.submit(self.local_source)
        network_future = self._pool.submit(self.network_source)

        try:
            local = local_future.result(timeout=self.timeout)
            remaining = max(0.0, self.timeout - (time.monotonic() - started))
            network = network_future.result(timeout=remaining)
        except FutureTimeoutError:
            logger.error(f'Printer discovery timed out after {self.timeout}s, keeping previous list')
            with self._lock:
                self._errors['refresh'] = f'discovery timed out after {self.timeout}s'
            return self._snapshot
        except Exception as e:
            logger.exception('Printer discovery failed, keeping previous list')
            with self._lock:
                self._errors['refresh'] = str(e)
            return self._snapshot

        printers = merge_printers(local, network)
        snapshot = DiscoverySnapshot(printers=tuple(printers), produced_at=self.clock())
        self._snapshot = snapshot

        logger.info(f'{len(printers)} printer(s) detected')
        return snapshot
