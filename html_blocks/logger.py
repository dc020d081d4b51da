"""
Logging for html_blocks: one "html_blocks" package logger with console (and
optional file) output, and per-stage child loggers under it.
"""

import logging
import sys
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: Union[int, str]) -> int:
    # "debug", "INFO", ... from the environment; unknown names fall back to INFO
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logger(
    name: str = "html_blocks",
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None
) -> logging.Logger:
    """
    Configure the package logger.

    The first call attaches a stdout handler (plus a file handler when
    log_file is given). Later calls only change the level, so HTMLImporter
    and run_converter.py can both call it.

    Args:
        name: Logger name
        level: Level number or name such as "DEBUG"
        log_file: Optional path to also log to
    """
    logger = logging.getLogger(name)
    level = _resolve_level(level)
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


logger = setup_logger()


def get_module_logger(module_name: str) -> logging.Logger:
    """Child logger such as "html_blocks.converter"; output goes through the package logger."""
    return logging.getLogger(f"html_blocks.{module_name}")
