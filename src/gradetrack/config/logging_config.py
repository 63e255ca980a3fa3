"""
Logging setup shared by the HTTP API and the service layer.
"""

import logging
import sys
from typing import Optional

from gradetrack.config.settings import settings


LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
HANDLER_NAME = "gradetrack"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach a single stdout handler to the package logger."""
    logger = logging.getLogger("gradetrack")
    logger.setLevel((level or settings.log_level).upper())

    if not any(handler.get_name() == HANDLER_NAME for handler in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        handler.set_name(HANDLER_NAME)
        logger.addHandler(handler)

    logger.propagate = False
    return logger
