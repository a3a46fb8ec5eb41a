"""
Spooler Transport
=================

RAW submission through the operating system's print queue, for printers
registered locally (USB, serial, or network printers installed with a
driver).

Windows:  win32print RAW job           fallback: copy /b <file> \\\\host\\share
POSIX:    lp -d <printer> -o raw <file>  fallback: lpr -P <printer> -o raw <file>
"""

import logging
import os
import subprocess
import sys
import tempfile
import threading
from typing import Dict, Any, List, Optional

from .base import BaseTransport
from ..config import COMMAND_TIMEOUT
from ..exceptions import TransportError, TransportTimeout, TransportIOError
from ..models import TransportKind

logger = logging.getLogger(__name__)

JOB_NAME = 'Briez Print Agent'


class SpoolerTransport(BaseTransport):
    """Hands the payload to the OS spooler as a RAW job."""

    kind = TransportKind.USB

    def __init__(self, os_handle: str, timeout: float = COMMAND_TIMEOUT,
                 platform: str = sys.platform):
        super().__init__()
        self.os_handle = os_handle
        self.timeout = timeout
        self.platform = platform

        self._process: Optional[subprocess.Popen] = None
        self._process_lock = threading.Lock()

    def describe(self) -> str:
        return f'spooler "{self.os_handle}"'

    @property
    def is_share(self) -> bool:
        """True for a UNC printer share (``\\\\host\\printer``)."""
        return self.os_handle.startswith('\\\\')

    def commands(self, path: str) -> List[List[str]]:
        """File submission commands in order of preference."""
        if self.platform == 'win32':
            # copy /b only reaches a queue through its share path
            if self.is_share:
                return [['cmd', '/c', 'copy', '/b', path, self.os_handle]]
            return []
        return [
            ['lp', '-d', self.os_handle, '-o', 'raw', path],
            ['lpr', '-P', self.os_handle, '-o', 'raw', path],
        ]

    # =========================================================================
    # Windows
    # =========================================================================

    def _print_raw_job(self, payload: bytes) -> int:
        """Submit a RAW document through win32print. Returns bytes written."""
        try:
            import win32print
        except ImportError as e:
            raise TransportIOError(f'Missing module: {e}. Install: pip install pywin32')

        try:
            handle = win32print.OpenPrinter(self.os_handle)
        except Exception as e:
            raise TransportIOError(f'Cannot open printer "{self.os_handle}": {e}')

        try:
            win32print.StartDocPrinter(handle, 1, (JOB_NAME, None, 'RAW'))
            try:
                win32print.StartPagePrinter(handle)
                self._check_cancelled()
                written = win32print.WritePrinter(handle, payload)
                win32print.EndPagePrinter(handle)
            finally:
                win32print.EndDocPrinter(handle)
        except TransportError:
            raise
        except Exception as e:
            raise TransportIOError(f'Spooler rejected the job for "{self.os_handle}": {e}')
        finally:
            win32print.ClosePrinter(handle)

        if written != len(payload):
            raise TransportIOError(f'Spooler accepted {written} of {len(payload)} bytes')
        return written

    # =========================================================================
    # Command line
    # =========================================================================

    def _abort(self) -> None:
        with self._process_lock:
            process = self._process
        if process is not None and process.poll() is None:
            process.kill()

    def _run(self, command: List[str]) -> None:
        self._check_cancelled()
        try:
            process = subprocess.Popen(command, stdout=subprocess.PIPE, stderr=subprocess.PIPE)
        except OSError as e:
            raise TransportIOError(f'{command[0]} could not be run: {e}')

        with self._process_lock:
            self._process = process
        try:
            stdout, stderr = process.communicate(timeout=self.timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.communicate()
            raise TransportTimeout(f'{command[0]} timed out after {self.timeout}s')
        finally:
            with self._process_lock:
                self._process = None

        if process.returncode != 0:
            self._check_cancelled()
            output = (stderr or stdout or b'').decode('utf-8', errors='replace').strip()
            raise TransportIOError(f'{command[0]} rejected the job (exit {process.returncode}): {output}')

    def _write_temp_file(self, payload: bytes) -> str:
        try:
            with tempfile.NamedTemporaryFile(prefix='briez-print-', suffix='.raw', delete=False) as f:
                f.write(payload)
                return f.name
        except OSError as e:
            raise TransportIOError(f'Failed to create print file: {e}')

    def _submit_file(self, payload: bytes) -> str:
        """Try each command in turn. Returns the name of the one that worked."""
        path = self._write_temp_file(payload)
        try:
            commands = self.commands(path)
            for i, command in enumerate(commands):
                try:
                    self._run(command)
                    return command[0]
                except TransportError as e:
                    if self.cancelled or i == len(commands) - 1:
                        raise
                    logger.warning(f'{self.describe()}: {e}; trying {commands[i + 1][0]}')
            raise TransportIOError(f'No submission command for {self.describe()}')
        finally:
            try:
                os.unlink(path)
            except OSError as e:
                logger.warning(f'Could not remove {path}: {e}')

    def _send(self, payload: bytes) -> Dict[str, Any]:
        if self.platform == 'win32':
            try:
                self._print_raw_job(payload)
                method = 'win32print'
            except TransportError as e:
                if self.cancelled or not self.is_share:
                    raise
                logger.warning(f'{self.describe()}: {e}; copying to the printer share')
                method = self._submit_file(payload)
        else:
            method = self._submit_file(payload)

        return {
            'method': method,
            'printer': self.os_handle,
            'bytes_sent': len(payload),
        }
