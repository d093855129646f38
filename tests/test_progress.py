"""Tests for progress reporters."""
import logging

from hevy_importer.services.progress import LoggingProgressReporter, NullProgressReporter


def test_logging_reporter_levels(caplog):
    reporter = LoggingProgressReporter(logging.getLogger("test.progress"))

    with caplog.at_level(logging.INFO, logger="test.progress"):
        reporter.start("catalog", "Fetching Hevy exercise templates...")
        reporter.succeed("catalog", "Found 4 exercise templates")
        reporter.fail("routines", "Hevy API error (500): boom")

    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (logging.INFO, "[catalog] Fetching Hevy exercise templates..."),
        (logging.INFO, "[catalog] done: Found 4 exercise templates"),
        (logging.ERROR, "[routines] failed: Hevy API error (500): boom"),
    ]


def test_null_reporter_accepts_events():
    reporter = NullProgressReporter()
    reporter.start("extract", "x")
    reporter.update("extract", "x")
    reporter.succeed("extract", "x")
    reporter.fail("extract", "x")
