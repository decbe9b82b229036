"""
Logging for the ZSPR sprite tools

Every module logs through a child of the ``zspr_tools`` logger; only the
command line entry point calls setup_logging(). Set ZSPR_TOOLS_DEBUG=1 to
force DEBUG output regardless of the configured level.
"""

import logging
import os
import sys
from typing import Optional, Union

LOGGER_NAME = "zspr_tools"
DEBUG_ENV_VAR = "ZSPR_TOOLS_DEBUG"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%H:%M:%S"


def _debug_forced() -> bool:
    return os.environ.get(DEBUG_ENV_VAR, "").strip().lower() in ("1", "true", "yes", "on")


def resolve_level(level: Union[str, int]) -> int:
    """Turn a level name or number into a logging level; unknown names mean INFO."""
    if _debug_forced():
        return logging.DEBUG
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO


def _attach(logger: logging.Logger, handler: logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)


def setup_logging(level: Union[str, int] = "INFO",
                  log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the package logger.

    Calling it again replaces the previous handlers. Console output goes
    to stderr so command output on stdout stays clean.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL) or number
        log_file: Optional file that receives the same records

    Returns:
        The ``zspr_tools`` logger
    """
    numeric_level = resolve_level(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    _attach(logger, logging.StreamHandler(sys.stderr), numeric_level)

    if log_file:
        try:
            _attach(logger, logging.FileHandler(log_file, encoding="utf-8"), numeric_level)
        except OSError as e:
            logger.warning(f"Could not open log file {log_file}: {e}")

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, e.g. get_logger(__name__) -> zspr_tools.zspr_file."""
    prefix = f"{LOGGER_NAME}."
    if name.startswith(prefix):
        name = name[len(prefix):]
    return logging.getLogger(prefix + name)
