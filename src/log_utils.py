"""
Logging utilities for the upgrade-gating runtime extension.
"""

import logging
import sys
from typing import Optional

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
JSON_FORMAT = (
    '{"severity": "%(levelname)s", "logger": "%(name)s", '
    '"message": "%(message)s", "timestamp": "%(asctime)s"}'
)


def setup_logging(
    verbose: bool = False,
    log_file: Optional[str] = None,
    json_format: bool = False,
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        verbose: Enable verbose (DEBUG) logging
        log_file: Optional path to a log file
        json_format: Emit single-line JSON records (for log collectors)

    Returns:
        Logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format=JSON_FORMAT if json_format else TEXT_FORMAT,
        handlers=handlers,
        force=True,
    )

    return logging.getLogger(__name__)
