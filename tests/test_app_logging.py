"""Tests for logging configuration."""

import logging

from learn_bridge.app_logging import configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger("learn_bridge")
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging(logging.DEBUG)
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1
    assert logger.level == logging.DEBUG
    logger.handlers.clear()
