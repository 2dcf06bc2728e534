"""
_context.py
===========
Context managers for reticulo.

Provides context managers for temporarily changing logger levels.

All context managers restore state on exit, even if exceptions occur.
"""

import logging
from contextlib import contextmanager


# ============================================================================ #
# Logging Context Managers
# ============================================================================ #


@contextmanager
def suppress_logger(logger_name: str, level: int = logging.CRITICAL):
    """
    Temporarily change a logger's level.

    Parameters
    ----------
    logger_name : str
        Name of the logger, e.g. 'reticulo._gall' or 'reticulo._logging'.
    level : int, default logging.CRITICAL
        Temporary logging level.

    Examples
    --------
    >>> # Keep the search summary but drop per-candidate gall diagnostics
    >>> with suppress_logger('reticulo._gall'):
    ...     scenarios = find_reticulations(splits, max_reticulations=2)

    Notes
    -----
    Exception-safe and nesting-safe: the previous level is restored on exit.
    """
    logger = logging.getLogger(logger_name)
    original_level = logger.level

    try:
        logger.setLevel(level)
        yield
    finally:
        logger.setLevel(original_level)


@contextmanager
def quiet(level: int = logging.CRITICAL):
    """
    Temporarily silence every ``reticulo.*`` logger.

    The package logger's level is raised; child loggers left at NOTSET
    inherit it.

    Examples
    --------
    >>> with quiet():
    ...     scenarios = find_reticulations(splits)

    >>> # Show only warnings (e.g. cancellation)
    >>> with quiet(logging.WARNING):
    ...     scenarios = find_reticulations(splits)
    """
    with suppress_logger("reticulo", level):
        yield
