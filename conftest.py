"""
conftest.py
===========
Session-level pytest configuration for the test suite.

Custom marks
------------
slow
    Applied to exhaustive checks that enumerate every candidate set for
    larger taxon counts or run the search on every small split system.
    Deselect with ``-m "not slow"``.

    Registration here suppresses PytestUnknownMarkWarning and makes the mark
    visible in ``pytest --markers``.

Logging
-------
The ``reticulo`` package logger is set to DEBUG for the session so that
``caplog`` sees per-candidate rejection records; pytest only displays them
for failing tests.
"""

import logging


def pytest_configure(config):
    """
    Configure pytest before test collection begins.
    """
    config.addinivalue_line(
        "markers",
        "slow: exhaustive enumeration checks (deselect with -m 'not slow')",
    )
    logging.getLogger("reticulo").setLevel(logging.DEBUG)


def pytest_unconfigure(config):
    """
    Restore the package logger level after all tests complete.
    """
    logging.getLogger("reticulo").setLevel(logging.NOTSET)
