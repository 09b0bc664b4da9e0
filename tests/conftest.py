import sys

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def _loguru_to_captured_stderr():
    """Point loguru at the stderr pytest captures for the current test."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG")
    yield
    logger.remove()


@pytest.fixture
def log_messages():
    """Collect formatted loguru messages at WARNING and above."""
    messages: list[str] = []
    logger.add(lambda m: messages.append(str(m)), level="WARNING", format="{level} {message}")
    return messages
