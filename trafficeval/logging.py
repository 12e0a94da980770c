"""Logging for trafficeval.

Every module logs through ``get_logger(__name__)``, which hangs off a single
``trafficeval`` logger. That logger owns one handler writing to stderr, so the
CLI can print result tables and ``--stdout`` JSON on stdout without log lines
mixed in. The level is switched globally, either directly with
``set_global_log_level`` or from CLI flags with ``configure_cli_logging``.
"""

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "trafficeval"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_configured = False


def setup_root_logger(
    level: int = logging.INFO,
    format_string: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
) -> None:
    """Attach the package handler to the ``trafficeval`` logger once.

    Later calls do nothing until ``reset_logging`` runs.

    Args:
        level: Initial level for the package logger.
        format_string: Record format; ``DEFAULT_FORMAT`` when omitted.
        handler: Handler to install; a stderr stream handler when omitted.
    """
    global _configured
    if _configured:
        return

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.setLevel(level)

    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT))
    package_logger.addHandler(handler)
    # pytest's caplog listens on the root logger
    package_logger.propagate = True

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under ``trafficeval`` that follows the package level."""
    setup_root_logger()
    logger = logging.getLogger(name)
    logger.setLevel(logging.NOTSET)
    return logger


def set_global_log_level(level: int) -> None:
    """Set the level of the package logger and of its handlers."""
    setup_root_logger()
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    for handler in package_logger.handlers:
        handler.setLevel(level)


def enable_debug_logging() -> None:
    set_global_log_level(logging.DEBUG)


def disable_debug_logging() -> None:
    set_global_log_level(logging.INFO)


def level_for_flags(verbose: bool = False, quiet: bool = False) -> int:
    """Map the CLI ``--verbose``/``--quiet`` flags to a level; verbose wins."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def configure_cli_logging(verbose: bool = False, quiet: bool = False) -> int:
    """Apply the CLI verbosity flags and return the level chosen."""
    level = level_for_flags(verbose, quiet)
    set_global_log_level(level)
    return level


def reset_logging() -> None:
    """Drop the package handler and level so the next call sets them up again."""
    global _configured
    _configured = False
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)


setup_root_logger()
