"""Logging configuration for tinyvcs.

Library modules log through ``logging.getLogger(__name__)`` under the
``tinyvcs`` namespace and never configure handlers themselves. Entry points
call :func:`configure_logging` to route those records to a rich console.
"""

import logging
import os
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "tinyvcs"


def get_log_level(default: str = "WARNING") -> int:
    """Get log level from the TINYVCS_LOG_LEVEL environment variable."""
    level = os.getenv("TINYVCS_LOG_LEVEL", default).upper()
    return getattr(logging, level, logging.WARNING)


def configure_logging(
    level: Union[int, str, None] = None,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Attach a RichHandler to the ``tinyvcs`` logger.

    Calling it again replaces the previous handler instead of stacking a new
    one.

    Args:
        level: Logging level (name or number); defaults to TINYVCS_LOG_LEVEL
        console: Console to render to (default: stderr)

    Returns:
        The configured ``tinyvcs`` logger
    """
    if level is None:
        level = get_log_level()
    elif isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger
