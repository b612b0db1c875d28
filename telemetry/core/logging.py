"""Package logger.

Modules log through ``logging.getLogger(__name__)``, which places them under
the ``telemetry`` namespace configured here. Handlers belong to the host
application; the package only attaches a ``NullHandler``.
"""

import logging
from typing import Union

LOGGER_NAME = "telemetry"

logger = logging.getLogger(LOGGER_NAME)
logger.addHandler(logging.NullHandler())


def configure_logging(level: Union[str, int] = "INFO") -> logging.Logger:
    """Set the level of the package logger and return it.

    Args:
        level: Level name (``"DEBUG"``) or numeric level.
    """
    if isinstance(level, str):
        level = level.upper()
    logger.setLevel(level)
    return logger
