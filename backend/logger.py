"""Loguru setup for the practice planner API.

Practice endpoints log through ``logger.bind(practice_id=...)`` so every line
about one practice can be grepped by its id. Lines outside a practice show '-'.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> "
    "<magenta>[{extra[practice_id]}]</magenta> <cyan>{module}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} {level: <7} [{extra[practice_id]}] {module}:{line} - {message}"


def setup_logger(level: str = "INFO", log_file: Optional[str] = None, retention: str = "14 days") -> None:
    """Log to stderr and, when ``log_file`` is set, to a file rotated at midnight."""
    logger.remove()
    logger.configure(extra={"practice_id": "-"})

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_path, format=FILE_FORMAT, level=level, rotation="00:00", retention=retention)

    logger.debug(f"Logging at {level}" + (f", file {log_file}" if log_file else ""))
