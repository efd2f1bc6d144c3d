"""
Shared application logger
"""
import logging
import sys

from writdesk.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logger(name: str = "writdesk") -> logging.Logger:
    """Configure the package logger once; child loggers inherit its handler."""
    log = logging.getLogger(name)
    if not log.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        log.addHandler(handler)
    log.setLevel((settings.LOG_LEVEL or "INFO").upper())
    return log


logger = setup_logger()
