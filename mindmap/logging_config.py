"""
Logging Configuration
Sets up the logger for the 'mindmap' namespace.
"""
import logging
import os
import sys
from typing import Optional, Union


def setup_logging(level: Optional[Union[int, str]] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the logger for the 'mindmap' namespace.

    Args:
        level: Logging level. Falls back to MINDMAP_LOG_LEVEL, then INFO.
        log_file: Optional path to also write logs to a file.
    """
    if level is None:
        level = os.environ.get("MINDMAP_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("mindmap")
    logger.setLevel(level)

    # Avoid duplicate handlers when called twice (server reload)
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
