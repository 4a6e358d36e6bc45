"""Structured JSON logging on top of Loguru with trace correlation."""

from __future__ import annotations

import json
import logging
import sys
from enum import Enum
from typing import Any, Dict
from uuid import UUID

from loguru import logger
from opentelemetry import trace


_STDLIB_RECORD_FIELDS = frozenset(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}

# Chatty third-party loggers capped at WARNING.
_QUIET_LOGGERS = ("uvicorn.access", "aiosqlite", "sqlalchemy.engine.Engine")


class InterceptHandler(logging.Handler):
    """Forward stdlib records (uvicorn, sqlalchemy, alembic) into Loguru."""

    def emit(self, record: logging.LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        try:
            message = record.getMessage()
        except (TypeError, ValueError):  # pragma: no cover - malformed format strings
            message = str(record.msg)

        context = {key: value for key, value in vars(record).items() if key not in _STDLIB_RECORD_FIELDS}
        target = logger.bind(stdlib_logger=record.name, **context)
        target.opt(depth=6, exception=record.exc_info).log(level, message.replace("{", "{{").replace("}", "}}"))


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    return value


def _serialize_log(message: "logger.Message", metadata: Dict[str, str]) -> None:
    record = message.record

    payload: Dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name.lower(),
        "message": record["message"],
        "logger": record["extra"].get("stdlib_logger", record["name"]),
        **metadata,
    }

    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        payload["trace_id"] = format(span_context.trace_id, "032x")
        payload["span_id"] = format(span_context.span_id, "016x")

    payload.update(
        {key: _jsonable(value) for key, value in record["extra"].items() if key != "stdlib_logger"}
    )

    if record["exception"] is not None:
        payload["exception"] = repr(record["exception"].value)

    sys.stdout.write(json.dumps(payload, default=str) + "\n")


def configure_logging(
    *,
    service_name: str,
    environment: str,
    version: str,
    level: str = "INFO",
) -> None:
    """Replace Loguru sinks with one JSON sink and route stdlib logging into it."""

    metadata = {"service": service_name, "environment": environment, "version": version}

    logger.remove()
    logger.add(lambda message: _serialize_log(message, metadata), level=level.upper(), backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
