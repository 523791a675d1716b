"""
Logging Configuration Tests
"""

import logging

from crudgate.config import Settings
from crudgate.logging_config import setup_logging


def test_debug_level():
    setup_logging(Settings(DEBUG=True))
    assert logging.getLogger("crudgate").level == logging.DEBUG
    assert logging.getLogger("pymongo").level == logging.WARNING


def test_default_level():
    setup_logging(Settings(DEBUG=False))
    assert logging.getLogger("crudgate").level == logging.INFO
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
