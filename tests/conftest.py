"""
Shared fixtures for the print agent tests.
"""

import socket
import threading
import time

import pytest

from briez_print_agent.models import Printer, TransportKind, Availability, local_printer_id


class FakeSource:
    """Discovery source returning fixed printers and counting calls."""

    def __init__(self, printers=None, delay: float = 0.0, error: Exception = None):
        self.printers = list(printers or [])
        self.delay = delay
        self.error = error
        self.calls = 0
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return list(self.printers)


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class TcpSink:
    """Local TCP server that records every payload it receives."""

    def __init__(self):
        self.received = []
        self._server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._server.bind(('127.0.0.1', 0))
        self._server.listen(5)
        self._server.settimeout(0.2)
        self.host, self.port = self._server.getsockname()
        self._stop = threading.Event()
        self._done = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        while not self._stop.is_set():
            try:
                conn, _ = self._server.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            with conn:
                conn.settimeout(2)
                chunks = []
                while True:
                    try:
                        chunk = conn.recv(4096)
                    except socket.timeout:
                        break
                    if not chunk:
                        break
                    chunks.append(chunk)
                self.received.append(b''.join(chunks))
                self._done.set()

    def wait(self, timeout: float = 2.0) -> bool:
        return self._done.wait(timeout)

    def close(self):
        self._stop.set()
        self._thread.join(timeout=2)
        self._server.close()


@pytest.fixture
def tcp_sink():
    sink = TcpSink()
    yield sink
    sink.close()


@pytest.fixture
def stalled_port():
    """A local port that accepts connections but never reads from them."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as server:
        server.bind(('127.0.0.1', 0))
        server.listen(5)
        yield server.getsockname()[1]


@pytest.fixture
def closed_port():
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(('127.0.0.1', 0))
        port = sock.getsockname()[1]
    return port


@pytest.fixture
def fake_clock():
    return FakeClock()


def make_local_printer(name: str, port_name: str = 'USB001', address: str = None,
                       port: int = None, kind: TransportKind = None,
                       availability: Availability = Availability.ONLINE) -> Printer:
    if kind is None:
        kind = TransportKind.NETWORK if address else TransportKind.USB
    return Printer(
        id=local_printer_id(name),
        name=name,
        transport_kind=kind,
        address=address,
        port=port or (9100 if address else None),
        os_handle=name,
        port_name=port_name,
        availability=availability,
    )
