"""
Print Job Model
===============

A print job lives only for the duration of one dispatch call; its outcome
is reported as a PrintResult.
"""

import uuid
from datetime import datetime
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any


class JobKind(str, Enum):
    TEST = 'test'
    RAW = 'raw'
    ORDER = 'order'


class ErrorReason(str, Enum):
    """Why a discovery or dispatch did not succeed."""

    DISCOVERY_SOURCE_UNAVAILABLE = 'DiscoverySourceUnavailable'
    PRINTER_NOT_FOUND = 'PrinterNotFound'
    UNSUPPORTED_TRANSPORT = 'UnsupportedTransport'
    TRANSPORT_TIMEOUT = 'TransportTimeout'
    TRANSPORT_CONNECTION_ERROR = 'TransportConnectionError'
    TRANSPORT_IO_ERROR = 'TransportIOError'


@dataclass(frozen=True)
class PrintJob:
    """Formatted payload addressed to one printer."""

    printer_id: str
    payload: bytes
    kind: JobKind = JobKind.RAW
    id: str = field(default_factory=lambda: f"JOB-{str(uuid.uuid4())[:8].upper()}")
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def size(self) -> int:
        return len(self.payload)


@dataclass
class PrintResult:
    """Outcome of a send, success or a typed failure."""

    success: bool
    error: Optional[str] = None
    reason: Optional[ErrorReason] = None
    job_id: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, **details) -> 'PrintResult':
        return cls(success=True, details=details)

    @classmethod
    def fail(cls, reason: ErrorReason, error: str) -> 'PrintResult':
        return cls(success=False, error=error, reason=reason)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {'success': self.success, **self.details}
        if self.job_id:
            data['job_id'] = self.job_id
        if not self.success:
            data['error'] = self.error
            data['reason'] = self.reason.value if self.reason else None
        return data
