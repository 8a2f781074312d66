import logging

import pytest

from mtracker.logging_config import configure_logging


@pytest.fixture
def restore_logging():
    root, pkg = logging.getLogger(), logging.getLogger("mtracker")
    saved = [(lg, list(lg.handlers), lg.level, lg.propagate) for lg in (root, pkg)]
    yield
    for logger, handlers, level, propagate in saved:
        logger.handlers[:] = handlers
        logger.setLevel(level)
        logger.propagate = propagate


def test_configure_logging_accepts_level_names(restore_logging):
    configure_logging("debug")
    logger = logging.getLogger("mtracker")

    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert [type(h) for h in logger.handlers] == [logging.StreamHandler]

    configure_logging(logging.WARNING)
    assert logging.getLogger("mtracker").level == logging.WARNING
    assert logging.getLogger("mtracker.stores").getEffectiveLevel() == logging.WARNING
