"""Structured logging via structlog, optionally teed to hourly rotating files."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import TimedRotatingFileHandler
from typing import TextIO

import structlog


class _TeeWriter:
    """Write structured log lines to stderr and, if given, a log file."""

    def __init__(self, log_file: TextIO | None = None) -> None:
        self._log_file = log_file

    def write(self, message: str) -> None:
        if self._log_file is not None:
            self._log_file.write(message)
            self._log_file.flush()
        sys.stderr.write(message)

    def flush(self) -> None:
        if self._log_file is not None:
            self._log_file.flush()
        sys.stderr.flush()


def setup_logging(log_level: str = "INFO", log_dir: str | None = None) -> None:
    """Configure structlog with JSON output to stderr (+ hourly files in ``log_dir``)."""
    log_level = log_level.upper()
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    stderr_handler = logging.StreamHandler()
    stderr_handler.setLevel(log_level)
    root_logger.addHandler(stderr_handler)

    log_file = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_path = os.path.join(log_dir, "jecnaproxy.jsonl")

        file_handler = TimedRotatingFileHandler(
            filename=log_path,
            when="H",
            interval=1,
            backupCount=168,  # 7 days of hourly logs
            utc=True,
        )
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

        log_file = open(log_path, "a")  # noqa: SIM115

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(log_level)
        ),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=_TeeWriter(log_file)),
        cache_logger_on_first_use=True,
    )
