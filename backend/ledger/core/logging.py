"""Application logging configuration."""

import logging
import sys

from ledger.core.config import settings


def setup_logging() -> None:
    """Configure the root logger from settings.

    Safe to call more than once; the stdout handler is only attached the first time.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    if not any(getattr(h, "_ledger_handler", False) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(fmt=settings.LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        handler._ledger_handler = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
