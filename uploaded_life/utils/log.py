"""
Logging setup for the command-line actions.

Library modules only create loggers (`logging.getLogger(__name__)`); handlers
and format are decided once, by whichever script is running.
"""

import logging
from typing import Optional

from uploaded_life.config.settings import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for an action.

    Args:
        level: Level name (e.g. "DEBUG"). Defaults to the configured
               UPLOADED_LIFE_LOG_LEVEL.

    Example:
        >>> configure_logging("DEBUG")
        >>> logging.getLogger("uploaded_life").debug("visible now")
    """
    if level is None:
        level = get_settings().loader.log_level

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        force=True,
    )
