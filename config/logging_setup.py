"""
Logging configuration shared by the API process and the scripts.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "INFO") -> None:
    """
    Attach a single stdout handler to the root logger.

    Calling this more than once replaces the previous handler instead of
    duplicating output.
    """

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        if getattr(handler, "_credit_economy_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    handler._credit_economy_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)


__all__ = ["configure_logging"]
