"""
Centralised Loguru configuration.

Sets up two logging sinks with different verbosity levels:
  - **stderr** (terminal): INFO and above, compact timestamp format, coloured.
  - **File**: DEBUG and above, full timestamps with source location,
    size-based rotation with compression and 30-day retention.  The
    per-day engine traces land here.

Call ``setup_logger()`` once at application startup, before any other
``logger`` usage.
"""
import sys
from datetime import date
from pathlib import Path
from typing import Optional

from loguru import logger

LOG_FILE_PREFIX = "ticker_picker_"
LOG_FILE_PATTERN = LOG_FILE_PREFIX + "{time:YYYY-MM-DD}.log"


def setup_logger(log_dir: str = "logs", level: str = "INFO") -> logger:
    """Configure and return the global Loguru logger.

    Args:
        log_dir: Directory for rotated log files, created if missing.
        level: Minimum level of the terminal sink.

    Returns:
        The configured ``logger`` singleton.
    """
    logger.remove()

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    logger.add(
        sys.stderr,
        level=level,
        format=(
            "<green>{time:HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<level>{message}</level>"
        ),
        colorize=True,
    )

    logger.add(
        log_path / LOG_FILE_PATTERN,
        level="DEBUG",
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
            "{name}:{function}:{line} - {message}"
        ),
        enqueue=True,
        encoding="utf-8",
    )

    return logger


def current_log_file(log_dir: str = "logs", day: Optional[date] = None) -> Path:
    """Path of the file sink written on *day* (today by default)."""
    day = day or date.today()
    return Path(log_dir) / f"{LOG_FILE_PREFIX}{day:%Y-%m-%d}.log"
