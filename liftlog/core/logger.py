"""Logger configuration for liftlog.

The engine tags messages with a `[AREA]` prefix and attaches structured fields
through `logger.bind` (window_days, lookback_days, retention_days). The console
sink shows the message only; the file sink also writes the bound fields.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from liftlog.config.settings import Settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message} | {extra}"

DEFAULT_ROTATION = "10 MB"
DEFAULT_RETENTION = "7 days"


def setup_logger(
    level: str = "INFO",
    log_file: str | Path | None = None,
    rotation: str = DEFAULT_ROTATION,
    retention: str = DEFAULT_RETENTION,
) -> None:
    """Configure loguru with a console sink and an optional rotating file sink.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file path; parent directories are created
        rotation: File rotation trigger (e.g., "10 MB", "1 day")
        retention: How long rotated files are kept (e.g., "7 days")
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=True,
            encoding="utf-8",
        )

    logger.bind(log_file=str(log_file) if log_file else None).info(f"[LOGGING] Logger initialized with level={level}")


def configure_logging(settings: Settings, debug: bool = False) -> None:
    """Configure logging from LIFTLOG_* settings; `debug` forces DEBUG level."""
    setup_logger(
        level="DEBUG" if debug else settings.log_level,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )
