"""Unit tests for the logging helper."""

import logging

from tradenexus.utils.logging import LOG_FORMAT, ContextFormatter, get_logger


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("tradenexus.test", logging.INFO, __file__, 10, "Saved quote", None, None)
    record.__dict__.update(extra)
    return record


def test_extra_fields_are_appended_sorted():
    formatter = ContextFormatter(fmt="%(message)s")

    line = formatter.format(_record(quote_id="q-1", item_name="LED Strip"))

    assert line == "Saved quote | item_name=LED Strip quote_id=q-1"


def test_plain_records_are_unchanged():
    formatter = ContextFormatter(fmt=LOG_FORMAT)

    assert formatter.format(_record()).endswith("Saved quote")


def test_get_logger_adds_one_handler():
    logger = get_logger("tradenexus.test.handlers", level="debug")
    again = get_logger("tradenexus.test.handlers", level="debug")

    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
