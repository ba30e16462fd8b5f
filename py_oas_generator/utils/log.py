"""Logging setup for the command-line tool."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: int | str = logging.WARNING) -> None:
    """Send log records of the generator to stderr.

    Generated source may go to stdout, so diagnostics never do.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)
