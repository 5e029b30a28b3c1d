"""Logging configuration."""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: int = logging.WARNING) -> None:
    """Configure the ledgerkit logger to write to stderr.

    Calling it again only changes the level, so the CLI can raise verbosity
    without stacking handlers.

    Args:
        level: Logging level (default: WARNING)
    """
    logger = logging.getLogger("ledgerkit")
    logger.setLevel(level)
    if not any(getattr(h, "_ledgerkit", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._ledgerkit = True
        logger.addHandler(handler)

    # SQLAlchemy is chatty at INFO
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
