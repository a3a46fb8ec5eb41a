"""
Network Transport
=================

Raw TCP printing (port 9100 / JetDirect) for thermal network printers.
"""

import logging
import socket
import threading
from typing import Dict, Any, Optional

from .base import BaseTransport
from ..config import PRINTER_PORT, CONNECT_TIMEOUT, WRITE_TIMEOUT
from ..exceptions import TransportTimeout, TransportConnectionError, TransportIOError
from ..models import TransportKind

logger = logging.getLogger(__name__)


class NetworkTransport(BaseTransport):
    """Writes the payload to ``host:port`` and closes the connection."""

    kind = TransportKind.NETWORK

    def __init__(self, host: str, port: int = PRINTER_PORT,
                 connect_timeout: float = CONNECT_TIMEOUT,
                 write_timeout: float = WRITE_TIMEOUT):
        super().__init__()
        self.host = host
        self.port = port or PRINTER_PORT
        self.connect_timeout = connect_timeout
        self.write_timeout = write_timeout

        self._sock: Optional[socket.socket] = None
        self._sock_lock = threading.Lock()

    def describe(self) -> str:
        return f'{self.host}:{self.port}'

    def _connect(self) -> socket.socket:
        try:
            return socket.create_connection((self.host, self.port), timeout=self.connect_timeout)
        except socket.timeout:
            raise TransportTimeout(f'Connection timeout to {self.host}:{self.port}')
        except ConnectionRefusedError:
            raise TransportConnectionError(f'Connection refused by {self.host}:{self.port}')
        except OSError as e:
            raise TransportConnectionError(f'Connection error to {self.host}:{self.port}: {e}')

    def _abort(self) -> None:
        with self._sock_lock:
            sock = self._sock
        if sock is None:
            return
        try:
            # Wakes up a sendall blocked on a full buffer
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            logger.debug(f'Abort {self.describe()}: {e}')

    def _send(self, payload: bytes) -> Dict[str, Any]:
        sock = self._connect()
        with self._sock_lock:
            self._sock = sock

        try:
            with sock:
                # cancel() may have arrived while connecting
                self._check_cancelled()
                logger.debug(f'Connected to {self.host}:{self.port}')
                sock.settimeout(self.write_timeout)
                try:
                    sock.sendall(payload)
                    # Flush before close
                    sock.shutdown(socket.SHUT_WR)
                except socket.timeout:
                    raise TransportTimeout(f'Write timeout to {self.host}:{self.port}')
                except OSError as e:
                    self._check_cancelled()
                    raise TransportIOError(f'Write error to {self.host}:{self.port}: {e}')
        finally:
            with self._sock_lock:
                self._sock = None

        return {
            'method': 'network',
            'host': self.host,
            'port': self.port,
            'bytes_sent': len(payload),
        }
