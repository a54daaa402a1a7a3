"""
Logging configuration for the VTFS server.
"""

import logging


def setup_logging(log_level: str = "INFO") -> logging.Logger:
    """
    Configure the root logger with a single console handler.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)

    Returns:
        The "vtfs" logger
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(
        fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root.addHandler(handler)

    logger = logging.getLogger("vtfs")
    logger.info(f"Logging initialized at level {log_level}")
    return logger
