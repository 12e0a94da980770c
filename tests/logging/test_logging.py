"""Tests for centralized logging behavior and configuration."""

import logging
import sys
from io import StringIO

import pytest

from trafficeval.logging import (
    configure_cli_logging,
    disable_debug_logging,
    enable_debug_logging,
    get_logger,
    level_for_flags,
    reset_logging,
    set_global_log_level,
    setup_root_logger,
)


@pytest.fixture(autouse=True)
def _reset_logging_each_test():
    """Reset logging state before and after each test to avoid cross-test bleed."""
    reset_logging()
    yield
    reset_logging()


def test_effective_levels_enable_disable():
    """INFO by default, DEBUG after enable, back to INFO after disable."""
    logger = get_logger("trafficeval.test")

    capture = StringIO()
    handler = logging.StreamHandler(capture)
    handler.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.addHandler(handler)

    logger.info("info-1")
    assert "info-1" in capture.getvalue()

    capture.seek(0)
    capture.truncate(0)
    logger.debug("debug-1")
    assert "debug-1" not in capture.getvalue()

    enable_debug_logging()
    logger.debug("debug-2")
    assert "debug-2" in capture.getvalue()

    capture.seek(0)
    capture.truncate(0)
    disable_debug_logging()
    logger.debug("debug-3")
    assert "debug-3" not in capture.getvalue()
    logger.removeHandler(handler)


def test_global_level_propagates_to_children_and_new_loggers():
    logger1 = get_logger("trafficeval.module1")
    logger2 = get_logger("trafficeval.module2")
    assert logger1.getEffectiveLevel() == logging.INFO
    assert logger2.getEffectiveLevel() == logging.INFO

    set_global_log_level(logging.WARNING)
    assert logger1.getEffectiveLevel() == logging.WARNING
    assert logger2.getEffectiveLevel() == logging.WARNING
    assert get_logger("trafficeval.module3").getEffectiveLevel() == logging.WARNING


def test_setup_root_logger_idempotent_no_duplicate_handlers():
    capture = StringIO()
    handler = logging.StreamHandler(capture)
    setup_root_logger(handler=handler)
    setup_root_logger()
    setup_root_logger(handler=logging.StreamHandler(StringIO()))

    root = logging.getLogger("trafficeval")
    assert root.handlers == [handler]

    get_logger("trafficeval.x").warning("hello-once")
    assert capture.getvalue().count("hello-once") == 1


def test_custom_format_string():
    capture = StringIO()
    setup_root_logger(
        format_string="[%(levelname)s] %(message)s",
        handler=logging.StreamHandler(capture),
    )
    get_logger("trafficeval.fmt").info("formatted")
    assert "[INFO] formatted" in capture.getvalue()


def test_evaluator_debug_summary_visible_when_enabled(caplog):
    from trafficeval.algorithms.propagation import evaluate_traffic

    enable_debug_logging()
    with caplog.at_level(logging.DEBUG, logger="trafficeval"):
        evaluate_traffic(
            [{"id": "a", "dailyQPS": 1}], [{"source": "a", "target": "zz"}], 1
        )
    assert "over 0 valid of 1 edge(s)" in caplog.text


def test_default_handler_writes_to_stderr():
    setup_root_logger()
    (handler,) = logging.getLogger("trafficeval").handlers
    assert isinstance(handler, logging.StreamHandler)
    assert handler.stream is sys.stderr


@pytest.mark.parametrize(
    "verbose,quiet,level",
    [
        (False, False, logging.INFO),
        (True, False, logging.DEBUG),
        (False, True, logging.WARNING),
        (True, True, logging.DEBUG),
    ],
)
def test_cli_flags_map_to_levels(verbose, quiet, level):
    assert level_for_flags(verbose, quiet) == level
    assert configure_cli_logging(verbose, quiet) == level
    assert get_logger("trafficeval.cli").getEffectiveLevel() == level


def test_stdout_json_not_mixed_with_log_lines(sample_data_dir, capsys):
    from trafficeval import cli

    src = sample_data_dir / "checkout.yaml"
    cli.main(["-v", "evaluate", str(src), "--no-results", "--stdout"])
    out = capsys.readouterr().out
    assert "DEBUG" not in out
    assert "Loading flows from" not in out
