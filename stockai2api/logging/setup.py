"""Logging configuration for the gateway."""

import logging
import os
import sys
from typing import Optional

LOGGER_NAME = "stockai2api"
LOG_LEVEL_ENV = "STOCKAI2API_LOG_LEVEL"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Set up logging with proper handlers and formatters.

    The level comes from ``level``, then STOCKAI2API_LOG_LEVEL, then INFO.
    """
    resolved = (level or os.getenv(LOG_LEVEL_ENV) or "INFO").upper()
    numeric_level = logging.getLevelName(resolved)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    # Clear any existing handlers
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Propagate to the root logger so pytest's caplog and uvicorn see records
    logger.propagate = True

    return logger
