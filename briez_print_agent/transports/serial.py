"""
Serial Transport
================

Placeholder for printers on a COM / tty port that the OS spooler does not
know about. Direct serial output is not supported yet, so every send fails
with UnsupportedTransport.
"""

from typing import Dict, Any

from .base import BaseTransport
from ..exceptions import UnsupportedTransport
from ..models import TransportKind


class SerialTransport(BaseTransport):

    kind = TransportKind.SERIAL

    def __init__(self, port_name: str = None):
        super().__init__()
        self.port_name = port_name

    def describe(self) -> str:
        return f'serial {self.port_name or "?"}'

    def _send(self, payload: bytes) -> Dict[str, Any]:
        raise UnsupportedTransport(f'Direct serial printing is not supported ({self.describe()})')
