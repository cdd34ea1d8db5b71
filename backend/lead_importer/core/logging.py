"""Process-wide logging setup shared by the worker and the status API."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def configure_logging(level: str | int = "INFO") -> None:
    """Send all records to stdout with a timestamped format.

    Safe to call more than once; later calls only adjust the level.
    """
    global _configured

    root = logging.getLogger()
    root.setLevel(level if isinstance(level, int) else level.upper())
    if _configured:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _configured = True
