"""
Unified output system using Loguru.
Every record goes to the log file; user-facing messages are also printed
through the shared Rich console.
"""

import sys
import threading
from pathlib import Path

from loguru import logger

from .console import get_console

_quiet = False
_quiet_lock = threading.Lock()

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def setup_loguru(log_file: Path, level: str = "INFO", console_output: bool = False) -> None:
    """
    Configure loguru for file logging, optionally mirrored to stderr.

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        console_output: Also emit records to stderr
    """
    # Remove default handler
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,  # Keep 5 backup files
        level=level,
        format=LOG_FORMAT,
        enqueue=False,  # Synchronous writes (thread-safe but blocking)
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def set_quiet(quiet: bool) -> None:
    """Suppress console printing from log() (file logging continues)."""
    global _quiet
    with _quiet_lock:
        _quiet = quiet


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to file AND prints to the console.

    Use this instead of print() for user-facing messages that should also be logged.

    Args:
        message: User-facing message (printed verbatim, no Rich markup)
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)

    with _quiet_lock:
        if _quiet:
            return

    color_map = {
        "debug": "cyan",
        "info": None,
        "success": "green",
        "warning": "yellow",
        "error": "red",
    }
    style = color_map.get(level)
    if style:
        get_console().print(message, style=style, markup=False)
    else:
        get_console().print(message, markup=False)
