import logging
from typing import Optional

from gridsched.utils.config import get_settings


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Retrieve a configured logger for the specified module.

    If no name is provided, the default logger name 'GridSched' is used.
    Each logger gets a StreamHandler with a timestamped format and the
    level configured in the settings.

    Args:
        name (Optional[str]): Name of the logger (usually the module name).

    Returns:
        logging.Logger: Configured logger instance.
    """
    logger = logging.getLogger(name or "GridSched")
    if not logger.hasHandlers():
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, get_settings().log_level.upper(), logging.INFO))
    return logger


def setup_logger():
    """
    Initialize the global logger for the GridSched application.

    Returns:
        logging.Logger: Global application logger.
    """
    logger = get_logger()
    logger.info("GridSched logger initialized")
    return logger
