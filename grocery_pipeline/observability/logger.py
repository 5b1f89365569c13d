"""
Structured JSON logging for the grocery cleaning pipeline

Every module logs through here so batch runs leave machine-parseable
records for offline audit of quality flags and fatal errors. Lines emitted
inside bind_run() / log_stage() carry run_id and stage without callers
passing them explicitly.
"""
import logging
import os
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Mapping

from pythonjsonlogger import jsonlogger

# Package loggers from get_logger(__name__) are children of this one
DEFAULT_LOGGER_NAME = "grocery_pipeline"

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_current_run: ContextVar[str | None] = ContextVar("current_run", default=None)
_current_stage: ContextVar[str | None] = ContextVar("current_stage", default=None)


class RunContextFilter(logging.Filter):
    """Copies the active run_id and stage onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "run_id", None) is None:
            record.run_id = _current_run.get()
        if getattr(record, "stage", None) is None:
            record.stage = _current_stage.get()
        return True


class PipelineJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter for pipeline runs

    Adds: timestamp, level, logger, module, function, process_id, and the
    run_id / stage context when one is bound
    """

    def add_fields(self, log_record: dict, record: logging.LogRecord, message_dict: dict) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = log_record.get("timestamp") or self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["module"] = record.module
        log_record["function"] = record.funcName
        log_record["process_id"] = record.process

        for key in ("run_id", "stage"):
            if log_record.get(key) is None:
                log_record.pop(key, None)


def setup_logger(
    name: str = DEFAULT_LOGGER_NAME,
    level: str | None = None,
    format_type: str | None = None,
) -> logging.Logger:
    """
    Configure a logger writing to stdout

    Args:
        name: Logger name
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL (defaults to LOG_LEVEL, then INFO)
        format_type: "json" or "text" (defaults to LOG_FORMAT, then json)

    Returns:
        Configured logger instance
    """
    log_level = LOG_LEVELS.get((level or os.getenv("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    format_type = format_type or os.getenv("LOG_FORMAT", "json")

    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.addFilter(RunContextFilter())

    if format_type == "json":
        handler.setFormatter(PipelineJsonFormatter(
            fmt="%(timestamp)s %(level)s %(logger)s %(run_id)s %(stage)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S",
        ))
    else:
        # Plain text for local runs
        handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s %(levelname)s [%(run_id)s:%(stage)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))

    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str = DEFAULT_LOGGER_NAME) -> logging.Logger:
    """
    Return the named logger, configuring it on first use.

    Module loggers under the package carry no handler of their own: they
    propagate to the package logger, so setup_logger() on that one sets the
    level and format for every module.
    """
    if name.startswith(f"{DEFAULT_LOGGER_NAME}."):
        if not logging.getLogger(DEFAULT_LOGGER_NAME).handlers:
            setup_logger(DEFAULT_LOGGER_NAME)
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    if not logger.handlers:
        return setup_logger(name)
    return logger


@contextmanager
def bind_run(run_id: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with run_id."""
    token = _current_run.set(run_id)
    try:
        yield
    finally:
        _current_run.reset(token)


class log_stage:
    """
    Context manager logging a pipeline stage's start, completion and duration

    The stage name is bound for the duration of the block, so nested log
    lines carry it too. Failures are logged with exc_info and re-raised.

    Usage:
        with log_stage("deduplicate", logger=logger) as stage:
            ...
        stage.duration
    """

    def __init__(self, stage: str, logger: logging.Logger | None = None, **extra_fields):
        self.stage = stage
        self.logger = logger or get_logger()
        self.extra_fields = extra_fields
        self.duration = 0.0
        self._start = 0.0
        self._token = None

    def __enter__(self):
        self._token = _current_stage.set(self.stage)
        self._start = time.time()
        self.logger.info(f"Starting: {self.stage}", extra=self.extra_fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration = time.time() - self._start
        fields = {"duration_seconds": round(self.duration, 3), **self.extra_fields}

        try:
            if exc_type is None:
                self.logger.info(f"Completed: {self.stage}", extra={"status": "success", **fields})
            else:
                self.logger.error(
                    f"Failed: {self.stage}",
                    extra={
                        "status": "error",
                        "error_type": exc_type.__name__,
                        "error_message": str(exc_val),
                        **fields,
                    },
                    exc_info=(exc_type, exc_val, exc_tb),
                )
        finally:
            _current_stage.reset(self._token)
        return False


def log_quality_summary(
    logger: logging.Logger,
    category: type[Warning],
    message: str,
    counts: Mapping[str, int],
) -> None:
    """
    Log non-fatal data quality findings as a single WARNING

    Nothing is logged when every count is zero.

    Args:
        logger: Target logger
        category: Warning class recorded in the "category" field
        message: Human-readable summary
        counts: Finding name -> number of affected rows
    """
    if not any(counts.values()):
        return
    logger.warning(message, extra={"category": category.__name__, **counts})
