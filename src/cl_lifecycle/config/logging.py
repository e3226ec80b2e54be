"""Logging setup for the command line entry point."""

from __future__ import annotations

import logging
from typing import Final

# migration and engine chatter is only shown with --verbose
_QUIET_LOGGERS: Final[tuple[str, ...]] = ("alembic", "sqlalchemy.engine")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger for CLI runs.

    Alembic and SQLAlchemy engine loggers stay at WARNING unless ``level`` is
    DEBUG, so a routine ``sync`` or ``dedupe`` only prints its own progress.
    """

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        force=force,
    )
    quiet_level = level if level <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
