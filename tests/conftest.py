"""Pytest configuration and shared fixtures."""

import logging

import pytest


@pytest.fixture(autouse=True)
def _quiet_store_logging():
    """Keep SQLite connection chatter out of test output."""
    logging.getLogger("fairshare.core.db_client").setLevel(logging.WARNING)
    yield
    logging.getLogger("fairshare.core.db_client").setLevel(logging.NOTSET)
