"""Logging setup for the TubeShelf command line."""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from tubeshelf.config.models import LoggingSettings

PACKAGE_LOGGER = "tubeshelf"
_FILE_FORMAT = "%(asctime)s | %(name)-28s | %(levelname)-8s | %(message)s"


def configure_logging(settings: LoggingSettings, directory: Path | None = None) -> logging.Logger:
    """Attach console and optional rotating file handlers to the package logger.

    Args:
        settings: Logging section of the effective configuration.
        directory: Directory that receives ``settings.file`` when set.

    Returns:
        logging.Logger: The configured ``tubeshelf`` logger.
    """

    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if settings.file and directory is not None:
        log_path = Path(directory).expanduser() / settings.file
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    return logger


__all__ = ["PACKAGE_LOGGER", "configure_logging"]
