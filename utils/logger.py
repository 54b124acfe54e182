import os
import sys
from typing import Optional

import loguru

LOG_FILE_ENV_VAR = "NARYA_LOG_FILE"


def setup_logger(log_level="WARNING", log_file: Optional[str] = None):
    """
    Set up a logger with a console handler and an optional file handler.

    Console output goes to stderr so it never mixes with herald output on stdout.

    Args:
        log_level (str): The minimum level of logs to display on the console.
        log_file (str): The file to which logs should also be written. Falls back
            to the NARYA_LOG_FILE environment variable; no file sink if neither is set.
    """
    loguru.logger.remove()  # Remove default handler

    # Console logger
    loguru.logger.add(
        sys.stderr,
        level=log_level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        colorize=True,
    )

    log_file = log_file or os.getenv(LOG_FILE_ENV_VAR)
    if log_file:
        # File logger
        loguru.logger.add(
            log_file,
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation="10 MB",
            retention="7 days",
            enqueue=True,
            backtrace=True,
            diagnose=True,
        )

    return loguru.logger

# Initialize a default logger instance
logger = setup_logger()
