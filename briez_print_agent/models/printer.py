"""
Printer Model
=============

Represents a printer found by discovery.

Records are immutable: a refresh builds new ones and the registry swaps the
whole list, so readers never see a half-updated printer.
"""

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any

from ..config import PRINTER_PORT


class TransportKind(str, Enum):
    NETWORK = 'network'
    USB = 'usb'
    SERIAL = 'serial'


class Availability(str, Enum):
    ONLINE = 'online'
    OFFLINE = 'offline'


LOCAL_ID_PREFIX = 'local-'
NETWORK_ID_PREFIX = 'net-'


def local_printer_id(name: str) -> str:
    """Stable id for a printer registered with the OS, derived from its name."""
    digest = hashlib.sha1(name.encode('utf-8')).hexdigest()
    return f'{LOCAL_ID_PREFIX}{digest[:12]}'


def network_printer_id(address: str) -> str:
    """Stable id for a probed network printer, derived from its address."""
    return f"{NETWORK_ID_PREFIX}{address.replace('.', '-')}"


@dataclass(frozen=True)
class Printer:
    """Printer as seen by discovery."""

    id: str
    name: str
    transport_kind: TransportKind = TransportKind.USB

    # Network printers only
    address: Optional[str] = None
    port: Optional[int] = None

    # Name the OS spooler knows the printer by (locally registered printers)
    os_handle: Optional[str] = None
    # Raw port descriptor reported by the OS (e.g. "IP_192.168.0.50", "COM3")
    port_name: Optional[str] = None

    availability: Availability = Availability.ONLINE

    @classmethod
    def from_network(cls, address: str, port: int = PRINTER_PORT) -> 'Printer':
        """Printer answering on the raw socket port but unknown to the OS."""
        return cls(
            id=network_printer_id(address),
            name=f'Impressora {address}',
            transport_kind=TransportKind.NETWORK,
            address=address,
            port=port,
            availability=Availability.ONLINE,
        )

    @property
    def is_network(self) -> bool:
        return self.transport_kind == TransportKind.NETWORK and bool(self.address)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'name': self.name,
            'type': self.transport_kind.value,
            'ip': self.address,
            'port': self.port,
            'portName': self.port_name,
            'status': self.availability.value,
        }
