#!/usr/bin/env python3
"""
Logger setup for band extraction
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from .config import LOGGING


def setup_logger(log_level: str = LOGGING['level'], log_dir: Optional[Path] = None) -> logging.Logger:
    """
    Setup logging configuration

    Console output goes to stderr so JSON results on stdout stay clean.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files (defaults to 'logs/')

    Returns:
        Configured logger instance
    """
    log_dir = Path(log_dir or LOGGING['log_dir'])

    # Create log directory
    log_dir.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOGGING['format'],
        handlers=[
            logging.FileHandler(log_dir / LOGGING['log_file']),
            logging.StreamHandler(sys.stderr)
        ],
        force=True
    )

    return logging.getLogger(__name__)
