"""
Logging Setup
=============

Console logging with thread names (every HTTP request, discovery probe and
dispatch runs on its own thread) plus optional rotating log files.

Log Format:
    2026-10-19 10:15:30 [INFO    ] [MainThread] briez_print_agent.registry - 3 printer(s) detected

Usage:
    from briez_print_agent.logging_config import setup_logging

    setup_logging(log_level='DEBUG')
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

APP_LOGGER = 'briez_print_agent'

LOG_FORMAT = '%(asctime)s [%(levelname)-8s] [%(threadName)s] %(name)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(
    log_level: Union[int, str] = logging.INFO,
    log_dir: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure the application logger.

    Args:
        log_level: Minimum level (name or number)
        log_dir: Directory for rotating log files; console only when None

    Returns:
        The configured application logger
    """
    if isinstance(log_level, str):
        log_level = logging.getLevelName(log_level.upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    logger = logging.getLogger(APP_LOGGER)
    logger.setLevel(log_level)
    logger.propagate = False

    # Allows re-configuration
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_dir:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            filename=log_dir / f'{APP_LOGGER}.log',
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8',
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        error_handler = RotatingFileHandler(
            filename=log_dir / f'{APP_LOGGER}_error.log',
            maxBytes=5 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8',
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        logger.addHandler(error_handler)

        logger.info(f'File logging enabled: {log_dir}')

    return logger
