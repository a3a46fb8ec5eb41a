"""
Discovery Reporting
===================

Discovery sources never raise for environment problems. They hand the
failure to a reporter ``(source, error)`` and contribute no printers.
"""

import logging
from typing import Callable

logger = logging.getLogger(__name__)

Reporter = Callable[[str, Exception], None]


def log_discovery_failure(source: str, error: Exception) -> None:
    """Default reporter: log and move on."""
    logger.warning(f'Discovery source "{source}" unavailable: {error}')
