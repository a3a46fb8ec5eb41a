"""
Base Transport
==============

Abstract base class for the ways a payload reaches a printer.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Any

from ..exceptions import PrintAgentError, TransportTimeout
from ..models import PrintResult, TransportKind

logger = logging.getLogger(__name__)


class BaseTransport(ABC):
    """Sends a raw byte payload to one printer."""

    kind: TransportKind = None

    def __init__(self):
        self._cancelled = threading.Event()

    def send(self, payload: bytes) -> PrintResult:
        """
        Send the payload.

        Never raises for device or OS failures; those come back as a failed
        PrintResult with the matching ErrorReason.
        """
        try:
            self._check_cancelled()
            details = self._send(payload)
        except PrintAgentError as e:
            logger.warning(f'{self.describe()} failed: {e}')
            return PrintResult.fail(e.reason, str(e))

        logger.info(f'{self.describe()}: sent {len(payload)} bytes')
        return PrintResult.ok(**details)

    def cancel(self) -> None:
        """
        Abort a send running on another thread.

        Once this returns no further bytes are handed to the printer; an
        in-progress write is interrupted where the transport allows it.
        """
        self._cancelled.set()
        self._abort()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def _check_cancelled(self) -> None:
        if self._cancelled.is_set():
            raise TransportTimeout(f'Send to {self.describe()} cancelled')

    def _abort(self) -> None:
        """Interrupt blocking I/O for cancel(). Nothing to do by default."""

    @abstractmethod
    def _send(self, payload: bytes) -> Dict[str, Any]:
        """
        Deliver the payload.

        Returns:
            Details for the success result

        Raises:
            PrintAgentError: on any delivery failure
        """
        pass

    @abstractmethod
    def describe(self) -> str:
        """Short target description for logs."""
        pass
