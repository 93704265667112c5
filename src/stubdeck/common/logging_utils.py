"""
Stubdeck Logging Setup

One-time configuration of the ``stubdeck`` logger hierarchy.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: str = "info", verbose: bool = False) -> logging.Logger:
    """
    Configure console logging for Stubdeck and uvicorn.

    Args:
        level: Log level name (debug, info, warning, ...)
        verbose: Force DEBUG regardless of ``level``

    Returns:
        The root ``stubdeck`` logger
    """
    numeric_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("stubdeck")
    logger.setLevel(numeric_level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    # uvicorn runs with log_config=None, so route its records the same way
    for name in ("uvicorn.error", "uvicorn.access"):
        uv_logger = logging.getLogger(name)
        uv_logger.setLevel(numeric_level)
        if not uv_logger.handlers:
            uv_handler = logging.StreamHandler(sys.stderr)
            uv_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            uv_logger.addHandler(uv_handler)
        uv_logger.propagate = False

    return logger
