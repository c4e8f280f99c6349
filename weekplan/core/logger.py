"""Loguru sinks for the weekly plan engine.

Engine modules log through the shared loguru logger with structured keyword
context (``logger.info("Merged plan weeks", preserved=4)``). Entry points
install the sinks once: a colorized console sink on stderr, and optionally a
rotating file sink written either as text or as JSON lines.
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level> <dim>{extra}</dim>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message} {extra}"


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
    json_file: bool = False,
) -> None:
    """Replace all loguru sinks with the engine's console and file sinks.

    Args:
        level: Minimum level for every sink (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path of the file sink; console only when None
        rotation: File size or age that starts a new file (e.g. "10 MB", "1 day")
        retention: How long rotated files are kept (e.g. "7 days")
        json_file: Serialize file records as JSON lines with their context
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path,
            format="{message}" if json_file else FILE_FORMAT,
            serialize=json_file,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
        )

    logger.debug("Logger initialized", level=level, log_file=log_file, json_file=json_file)


def setup_logger_from_settings(level: str | None = None) -> None:
    """Install sinks from WEEKPLAN_LOG_* settings, optionally overriding the level."""
    from weekplan.config.settings import settings

    setup_logger(
        level=(level or settings.log_level).upper(),
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
        json_file=settings.log_json,
    )
