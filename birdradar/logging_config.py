"""
Logging setup for the compilation step.

Console lines are plain text; the rotating file under the log directory
and the per-run ``compile.jsonl`` are JSON Lines carrying the run id and
any structured ``extra=`` fields.
"""

import json
import logging
import os
import time
import uuid
from logging.handlers import RotatingFileHandler

CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
CONSOLE_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "compile.log"
RUN_LOG_FILE_NAME = "compile.jsonl"

_EXTRA_FIELDS = (
    "step_name", "table", "rows_in", "rows_out",
    "input_summary", "output_summary", "timing_seconds", "warnings",
)

_run_id = None
_configured = False
_run_handler = None


def _new_run_id():
    return uuid.uuid4().hex[:8]


def get_run_id():
    global _run_id
    if _run_id is None:
        _run_id = _new_run_id()
    return _run_id


def set_run_id(run_id=None):
    """Bind *run_id* (or a fresh one) to all subsequent records."""
    global _run_id
    _run_id = run_id or _new_run_id()
    return _run_id


def _stamp_run_id(record):
    record.run_id = get_run_id()
    return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S.")
                         + f"{int(record.msecs):03d}",
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "run_id": getattr(record, "run_id", None),
            "message": record.getMessage(),
        }
        entry.update(
            (key, getattr(record, key)) for key in _EXTRA_FIELDS if hasattr(record, key)
        )
        return json.dumps(entry, default=str)


def _json_handler(handler, level):
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    # handler-level, so records propagated from child loggers are stamped too
    handler.addFilter(_stamp_run_id)
    return handler


def setup_logging(run_dir=None, console_level=None, file_level=logging.DEBUG):
    """Attach console and JSON file handlers to the root logger.

    The console level defaults to the LOG_LEVEL environment variable
    (INFO if unset); the log directory to BIRDRADAR_LOG_DIR or
    ``./logs``. With *run_dir*, records also go to
    ``{run_dir}/compile.jsonl``; a later call with another *run_dir*
    moves that handler to the new directory.
    """
    global _configured, _run_handler

    root = logging.getLogger()
    if not _configured:
        if console_level is None:
            console_level = getattr(
                logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO
            )
        root.setLevel(logging.DEBUG)

        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, CONSOLE_DATEFMT))
        root.addHandler(console)

        log_dir = os.environ.get("BIRDRADAR_LOG_DIR") or os.path.join(os.getcwd(), "logs")
        os.makedirs(log_dir, exist_ok=True)
        root.addHandler(_json_handler(
            RotatingFileHandler(
                os.path.join(log_dir, LOG_FILE_NAME),
                maxBytes=5 * 1024 * 1024,
                backupCount=3,
            ),
            file_level,
        ))
        _configured = True

    if run_dir is None:
        return
    path = os.path.abspath(os.path.join(run_dir, RUN_LOG_FILE_NAME))
    if _run_handler is not None:
        if _run_handler.baseFilename == path:
            return
        root.removeHandler(_run_handler)
        _run_handler.close()
    os.makedirs(run_dir, exist_ok=True)
    _run_handler = _json_handler(logging.FileHandler(path), file_level)
    root.addHandler(_run_handler)


def get_pipeline_logger(name):
    if not _configured:
        setup_logging()
    return logging.getLogger(name)


def log_filter_counts(logger, table, rows_in, rows_out):
    """DEBUG record of how many rows of *table* a filter kept."""
    logger.debug(
        "%s: kept %d of %d rows", table, rows_out, rows_in,
        extra={"table": table, "rows_in": rows_in, "rows_out": rows_out},
    )


def log_step_summary(logger, step_name, status="success", input_summary=None,
                     output_summary=None, timing_seconds=None, warnings_list=None):
    """INFO record ``[step] status (1.23s) output={...}`` with the summaries as extras."""
    message = f"[{step_name}] {status}"
    if timing_seconds is not None:
        message += f" ({timing_seconds:.2f}s)"
    if output_summary:
        message += f" output={output_summary}"

    extra = {"step_name": step_name}
    for key, value in (("input_summary", input_summary),
                       ("output_summary", output_summary),
                       ("warnings", warnings_list)):
        if value:
            extra[key] = value
    if timing_seconds is not None:
        extra["timing_seconds"] = timing_seconds
    logger.info(message, extra=extra)


class StepTimer:
    """``with StepTimer() as t: ...`` leaves the wall time in ``t.elapsed``."""

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, *exc_info):
        self.elapsed = time.perf_counter() - self.start
