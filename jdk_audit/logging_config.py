"""
Centralized logging configuration for jdk-audit.

All modules log through children of the ``jdk_audit`` logger
(``logging.getLogger(__name__)``), so configuring that one logger controls
console and file output for scanning, classification and catalog queries.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "jdk_audit"

CONSOLE_FORMAT = "%(levelname_colored)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"

_configured: Optional[logging.Logger] = None


def _resolve_level(level: str, verbose: bool, quiet: bool) -> int:
    if verbose:
        name = "DEBUG"
    elif quiet:
        name = "WARNING"
    else:
        name = os.environ.get("JDK_AUDIT_LOG_LEVEL", level).upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    verbose: bool = False,
    quiet: bool = False,
    propagate: bool = False,
) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again replaces the handlers of the previous call.

    Args:
        level: Level name, overridden by $JDK_AUDIT_LOG_LEVEL
        log_file: Extra log file (defaults to $JDK_AUDIT_LOG_FILE)
        verbose: DEBUG level, worker thread names on the console
        quiet: WARNING level and no console handler
        propagate: Pass records on to the root logger

    Returns:
        The ``jdk_audit`` logger
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_resolve_level(level, verbose, quiet))
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    # stderr keeps --json output on stdout parseable
    if not quiet:
        console = logging.StreamHandler(sys.stderr)
        console.setLevel(logger.level)
        console.setFormatter(ColoredFormatter(CONSOLE_FORMAT, use_colors=sys.stderr.isatty(), show_thread=verbose))
        logger.addHandler(console)

    log_file = log_file or os.environ.get("JDK_AUDIT_LOG_FILE")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(file_handler)

    logger.propagate = propagate
    _configured = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the package logger, configuring it with defaults on first use."""
    if _configured is None:
        return setup_logging()
    return _configured


class ColoredFormatter(logging.Formatter):
    """
    Formatter with colored level names.

    Scan workers log concurrently, so the worker thread name can be
    prefixed to each message with show_thread.
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str, use_colors: bool = True, show_thread: bool = False):
        super().__init__(fmt)
        self.use_colors = use_colors
        self.show_thread = show_thread

    def format(self, record: logging.LogRecord) -> str:
        name = record.levelname
        color = self.LEVEL_COLORS.get(name, "") if self.use_colors else ""
        record.levelname_colored = f"{color}{name}{self.RESET}" if color else name

        text = super().format(record)
        if self.show_thread and record.threadName not in (None, "", "MainThread"):
            text = f"[{record.threadName}] {text}"
        return text
