"""Tests for loguru logging setup."""

import logging

from loguru import logger

from syncguard.utils.logging import setup_logging


def test_stdlib_records_reach_loguru():
    setup_logging("DEBUG")
    messages: list[str] = []
    sink_id = logger.add(lambda message: messages.append(str(message)), format="{message}")
    try:
        logging.getLogger("apscheduler.scheduler").warning("Run time of job was missed")
    finally:
        logger.remove(sink_id)
    assert any("Run time of job was missed" in m for m in messages)
