"""
Logging helper shared by the client, poller and tracker modules.
"""

import logging
import sys

from feedback_client.config import get_settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def get_logger(name: str) -> logging.Logger:
    """Get a logger writing to stdout at the configured LOG_LEVEL."""
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(getattr(logging, get_settings().LOG_LEVEL, logging.INFO))

    return logger
