"""Logging configuration for slackwire"""
import os
import logging
from typing import Optional

_configured = False

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger.

    Without a level, LOG_LEVEL is used and only the first call has an effect.
    An explicit level always replaces the current one.
    """
    global _configured
    if _configured and level is None:
        return
    level = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
    if not _configured:
        logging.basicConfig(level=level, format=LOG_FORMAT)
        # httpx logs every request at INFO
        logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger().setLevel(level)
    _configured = True

def get_logger(name: str) -> logging.Logger:
    """Get a logger, configuring logging on first use.

    Args:
        name: Logger name, usually __name__

    Returns:
        The logger
    """
    configure_logging()
    return logging.getLogger(name)
