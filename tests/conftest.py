"""Pytest configuration and fixtures."""

import logging

import pytest

from forkunit import Suite, create


@pytest.fixture(autouse=True)
def cleanup_loggers():
    """Reset forkunit loggers after each test so handlers do not leak between tests."""
    yield

    loggers_to_reset = [
        name
        for name in logging.Logger.manager.loggerDict.keys()
        if name.startswith("forkunit")
    ]

    for name in loggers_to_reset:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


@pytest.fixture
def suite() -> Suite:
    s = create()
    assert s is not None
    yield s
    s.destroy()
