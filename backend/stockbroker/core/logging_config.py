"""
Logging configuration for StockBroker Pro.

Sets up the root logger once at application start and quiets the noisier
third-party loggers.
"""

import logging
from typing import Dict

from stockbroker.core.config import settings

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"

# Third-party loggers kept at WARNING regardless of LOG_LEVEL
_QUIET_LOGGERS = ("asyncio", "redis", "uvicorn.access")


def configure_logging(level_name: str | None = None) -> None:
    """Configure logging for the application."""
    level_name = (level_name or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger_levels() -> Dict[str, str]:
    """Get current log levels for the root and the quieted loggers."""
    result = {"root": logging.getLevelName(logging.getLogger().level)}
    for name in _QUIET_LOGGERS:
        result[name] = logging.getLevelName(logging.getLogger(name).level)
    return result
