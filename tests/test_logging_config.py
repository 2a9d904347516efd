"""
Tests for the structured logging helpers.
"""

import json
import logging

from birdradar.logging_config import (
    JsonFormatter,
    StepTimer,
    get_run_id,
    log_filter_counts,
    log_step_summary,
    set_run_id,
    setup_logging,
)


def _record(msg="hello", **extra):
    record = logging.LogRecord("birdradar.test", logging.INFO, __file__, 10, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:

    def test_basic_fields(self):
        entry = json.loads(JsonFormatter().format(_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "birdradar.test"
        assert entry["message"] == "hello"

    def test_extra_fields_included(self):
        entry = json.loads(JsonFormatter().format(
            _record(table="echo", rows_in=10, rows_out=4)
        ))
        assert entry["table"] == "echo"
        assert entry["rows_in"] == 10
        assert entry["rows_out"] == 4


class TestRunId:

    def test_set_run_id(self):
        assert set_run_id("abc12345") == "abc12345"
        assert get_run_id() == "abc12345"

    def test_regenerated_when_empty(self):
        assert len(set_run_id()) == 8


class TestLogHelpers:

    def test_filter_counts_logged_at_debug(self, caplog):
        logger = logging.getLogger("birdradar.test")
        with caplog.at_level(logging.DEBUG, logger="birdradar.test"):
            log_filter_counts(logger, "protocol data", 4, 1)
        record = caplog.records[-1]
        assert record.levelno == logging.DEBUG
        assert record.rows_out == 1
        assert "kept 1 of 4" in record.getMessage()

    def test_step_summary(self, caplog):
        logger = logging.getLogger("birdradar.test")
        with caplog.at_level(logging.INFO, logger="birdradar.test"):
            log_step_summary(logger, "compile_data", output_summary={"echoData": 3},
                             timing_seconds=0.5, warnings_list=["w"])
        record = caplog.records[-1]
        assert record.step_name == "compile_data"
        assert record.warnings == ["w"]
        assert "[compile_data] success" in record.getMessage()


def test_step_timer():
    with StepTimer() as timer:
        sum(range(1000))
    assert timer.elapsed >= 0


def _json_lines(path):
    with open(path) as f:
        return [json.loads(line) for line in f if line.strip()]


class TestRunLog:

    def test_child_logger_records_carry_run_id(self, tmp_path):
        setup_logging(run_dir=str(tmp_path / "run"))
        set_run_id("feed0001")
        logging.getLogger("birdradar.test").info("from child")
        entries = _json_lines(tmp_path / "run" / "compile.jsonl")
        assert entries[-1]["message"] == "from child"
        assert entries[-1]["run_id"] == "feed0001"

    def test_run_log_follows_latest_run_dir(self, tmp_path):
        logger = logging.getLogger("birdradar.test")
        setup_logging(run_dir=str(tmp_path / "first"))
        logger.info("first run")
        setup_logging(run_dir=str(tmp_path / "second"))
        logger.info("second run")
        first = [e["message"] for e in _json_lines(tmp_path / "first" / "compile.jsonl")]
        second = [e["message"] for e in _json_lines(tmp_path / "second" / "compile.jsonl")]
        assert "second run" not in first
        assert second == ["second run"]
