"""Structured logging for sluice.

Opinionated defaults:
- Everything goes to stderr. In Hadoop Streaming, stdout is the job's output
  channel, and a stray log line there is a corrupt record downstream.
- JSON lines when structured (the task logs get collected and grepped)
- Human-readable otherwise

Every driver log record carries the job and stage names. Skip records also
carry the line number and skip reason, and the end-of-run record carries the
metrics snapshot. Both formatters render whichever of these are present.

The library never calls configure_logging() itself. A worker script opts in.
"""

import json
import logging
import sys
from collections.abc import Mapping, MutableMapping
from typing import Any, TextIO

# Record attributes the driver attaches, in display order
CONTEXT_FIELDS = ("job", "stage", "line", "reason")


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """The sluice context fields present on a record."""
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class StructuredFormatter(logging.Formatter):
    """JSON Lines formatter for production use."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
            **record_context(record),
        }

        metrics = getattr(record, "metrics", None)
        if isinstance(metrics, Mapping):
            log_entry["metrics"] = dict(metrics)

        if record.exc_info and record.exc_info[1]:
            log_entry["error"] = {
                "type": type(record.exc_info[1]).__name__,
                "message": str(record.exc_info[1]),
            }

        return json.dumps(log_entry, default=str)


class HumanFormatter(logging.Formatter):
    """Readable formatter for development.

    Renders as ``LEVEL logger [job] (stage) message line=N reason=R``. The
    metrics snapshot is left out, the message already summarizes it.
    """

    COLORS: dict[str, str] = {  # noqa: RUF012
        "DEBUG": "\033[36m",  # cyan
        "INFO": "\033[32m",  # green
        "WARNING": "\033[33m",  # yellow
        "ERROR": "\033[31m",  # red
        "CRITICAL": "\033[35m",  # magenta
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:<8}"
        if self.color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"

        context = record_context(record)
        parts = [level, record.name]
        if "job" in context:
            parts.append(f"[{context.pop('job')}]")
        if "stage" in context:
            parts.append(f"({context.pop('stage')})")
        parts.append(record.getMessage())
        parts.extend(f"{key}={value}" for key, value in context.items())

        line = " ".join(parts)
        if record.exc_info and record.exc_info[1]:
            line += f"\n  {type(record.exc_info[1]).__name__}: {record.exc_info[1]}"
        return line


class JobLoggerAdapter(logging.LoggerAdapter[logging.Logger]):
    """Logger adapter that injects job and stage context.

    Per-call ``extra`` (line numbers, skip reasons) is kept alongside it.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


def configure_logging(
    level: int | str = logging.INFO,
    structured: bool = False,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Configure sluice logging.

    Replaces any handler a previous call installed, so calling this twice
    leaves exactly one.

    Args:
        level: Log level, as a number or a name ("DEBUG"). Default INFO.
        structured: If True, use JSON lines format. If False, use human-readable.
        stream: Where to write. Defaults to stderr. Never point this at
            stdout in a streaming job.

    Returns:
        The installed handler.
    """
    if isinstance(level, str):
        names = logging.getLevelNamesMapping()
        if level.upper() not in names:
            raise ValueError(f"Unknown log level: {level!r}")
        level = names[level.upper()]

    sluice_logger = logging.getLogger("sluice")
    sluice_logger.setLevel(level)
    sluice_logger.handlers.clear()

    out = stream if stream is not None else sys.stderr
    handler = logging.StreamHandler(out)
    if structured:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(HumanFormatter(color=out.isatty()))
    sluice_logger.addHandler(handler)

    # Don't propagate to root logger
    sluice_logger.propagate = False
    return handler


def get_logger(job_name: str, stage_name: str | None = None) -> JobLoggerAdapter:
    """Get a logger with job/stage context baked in."""
    extra: dict[str, str] = {"job": job_name}
    if stage_name:
        extra["stage"] = stage_name
    return JobLoggerAdapter(logging.getLogger(f"sluice.driver.{job_name}"), extra)
