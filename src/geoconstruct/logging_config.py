"""
Logging Configuration
=====================
Output setup for the `geoconstruct` logger namespace.

Why is this file needed?
------------------------
1. Every module logs through `logging.getLogger(__name__)`; this is the one
   place that decides where those records go.
2. The CLI maps `-v` to DEBUG, which shows rejected intents and every recorded
   macro line; the default WARNING only shows skipped macro commands and
   failed file operations.
3. A replay can be mirrored to a log file (`--log-file`) next to its output.
"""
import logging
import os
import sys
from typing import Optional

LOGGER_NAME = "geoconstruct"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the `geoconstruct` logger and return it.

    Args:
        level: Threshold for the logger and all of its handlers.
        log_file: Optional path of a log file; missing directories are created
            and an existing file is overwritten.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    # Repeated setup (tests, several CLI runs in one process) replaces the handlers
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        os.makedirs(os.path.dirname(os.path.abspath(log_file)), exist_ok=True)
        handlers.append(logging.FileHandler(log_file, mode='w', encoding='utf-8'))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.debug(f"Logging initialized at {logging.getLevelName(level)}"
                 + (f", mirrored to {log_file}." if log_file else "."))
    return logger
