"""
Logging configuration for proctop.

The UI owns stdout/stderr while it runs, so log records only ever go to a
file; without one the package logger is silenced.
"""

import logging

from proctop.config import APP_NAME, Settings


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Configure and return the package logger.

    Args:
        settings: Runtime settings carrying the log file and level.

    Returns:
        The configured ``proctop`` logger.
    """
    logger = logging.getLogger(APP_NAME)
    logger.setLevel(settings.log_level)

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if settings.log_file is not None:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(settings.log_file, mode="a", encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)
    else:
        logger.addHandler(logging.NullHandler())

    # Keep records off the root logger, which may point at the terminal
    logger.propagate = False

    return logger
