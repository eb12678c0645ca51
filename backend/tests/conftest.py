"""Root conftest — shared test configuration."""

import logging
import os

import pytest

# Ensure tests never talk to a real favour API or bucket
os.environ.setdefault("FAVOUR_API_BASE_URL", "http://favours.test/api")
os.environ.setdefault("BLOB_STORE_BASE_URL", "http://blobs.test/v0")
os.environ.setdefault("BLOB_STORE_BUCKET", "test-bucket")


@pytest.fixture
def favours_logger():
    """The favours logger, with handlers and level restored after the test."""
    logger = logging.getLogger("favours")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
