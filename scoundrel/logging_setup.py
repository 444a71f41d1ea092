"""Logging configuration for the server and CLI entry points."""

from __future__ import annotations
import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the ``scoundrel`` logger."""
    logger = logging.getLogger("scoundrel")
    logger.setLevel(level)
    if not any(getattr(h, "_scoundrel", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._scoundrel = True
        logger.addHandler(handler)
