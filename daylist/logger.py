"""
Logging setup for the command line front end.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(log_level: str = "WARNING") -> None:
    """
    Route daylist logs to stderr through rich.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )
