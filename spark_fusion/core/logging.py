"""Loguru sink configuration for host applications"""

import sys
from typing import Optional

from loguru import logger

from spark_fusion.core.config import settings

_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(level: Optional[str] = None, sink=sys.stderr) -> int:
    """
    Replace loguru's default sink with one filtered at LOG_LEVEL.

    The library only emits records; hosts call this once at startup.
    Returns the loguru handler id so the host can remove it later.
    """
    logger.remove()
    return logger.add(sink, level=(level or settings.LOG_LEVEL).upper(), format=_FORMAT)
