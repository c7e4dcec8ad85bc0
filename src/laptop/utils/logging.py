"""Rotating logger setup for the laptop bootstrap run."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


def setup_logger(
    name: str = "laptop",
    log_file: str = "~/.laptop/logs/laptop.log",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 3,
    level: int = logging.INFO,
    console_level: Optional[int] = logging.WARNING,
) -> logging.Logger:
    """Setup rotating file logger with ISO 8601 timestamps.

    Args:
        name: Logger name
        log_file: Path to log file (created if doesn't exist, ``~`` expanded)
        max_bytes: Max size before rotation
        backup_count: Number of rotated files to keep
        level: Logging level for the file handler
        console_level: Level for the console handler; None disables it.
            Kept at WARNING by default so step narration stays readable.

    Returns:
        Configured logger instance
    """
    log_path = Path(log_file).expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(min(level, console_level) if console_level is not None else level)

    # Avoid duplicate handlers if already configured
    if logger.handlers:
        return logger

    file_handler = RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console_level is not None:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
