import logging
import os
from typing import Optional


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger with detailed formatting.

    Args:
        level: Optional logging level override
        fmt: Optional format string override

    Returns:
        The configured root logger
    """
    logger = logging.getLogger()

    # Set level from argument, then environment, defaulting to INFO
    log_level = (
        level or
        os.getenv('LOG_LEVEL', 'INFO')
    ).upper()
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    formatter = logging.Formatter(
        fmt=fmt or (
            '%(asctime)s | %(levelname)-8s | '
            '%(name)s:%(funcName)s:%(lineno)d | '
            '%(message)s'
        ),
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Add the console handler only once, even if the app factory runs twice
    if not any(getattr(h, '_boards_handler', False) for h in logger.handlers):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler._boards_handler = True
        logger.addHandler(console_handler)

    return logger
