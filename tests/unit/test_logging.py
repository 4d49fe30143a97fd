"""Unit tests for log sink configuration"""

import sys

from loguru import logger

from spark_fusion.core.logging import configure_logging


def test_level_filters_records() -> None:
    messages = []
    handler_id = configure_logging("warning", sink=messages.append)
    try:
        logger.info("cycle inputs gathered")
        logger.warning("spark cycle still running")
    finally:
        logger.remove(handler_id)
        logger.add(sys.stderr)

    assert len(messages) == 1
    assert "spark cycle still running" in messages[0]
    assert "WARNING" in messages[0]
