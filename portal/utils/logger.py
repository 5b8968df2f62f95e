"""
Logging setup.

One process-wide configuration driven by LOG_LEVEL.
Modules do:

    from portal.utils.logger import get_logger
    logger = get_logger(__name__)
"""

import logging
import sys

from portal.config.settings import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format=LOG_FORMAT,
    stream=sys.stderr,
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(
    logging.INFO if settings.DB_ECHO else logging.WARNING
)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger under the shared configuration."""
    return logging.getLogger(name)


# Application-wide logger for code without a natural module name
logger = get_logger("portal")
