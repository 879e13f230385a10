"""Structured logging: one JSON object or one logfmt line per record.

Both formats carry the ``extra={...}`` fields passed at the call site and,
for records logged with an exception, its message as ``err``. A failed
refresh also reports the pipeline stage that failed as ``step``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import LoggingConfig

# Attributes every LogRecord has; anything else was passed through ``extra``.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


def _timestamp(record: logging.LogRecord) -> str:
    return datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec="milliseconds")


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Extra fields of a record plus ``err``/``step`` taken from its exception."""
    fields = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRS and v is not None}
    if record.exc_info and record.exc_info[1]:
        exc = record.exc_info[1]
        fields["err"] = str(exc)
        step = getattr(exc, "step", None)
        if step:
            fields["step"] = step
    return fields


class JSONFormatter(logging.Formatter):
    """Emits log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": _timestamp(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(record_fields(record))
        if record.exc_info and record.exc_info[1]:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _logfmt_value(value: Any) -> str:
    text = str(value)
    if text == "" or any(c in text for c in ' ="\\') or not text.isprintable():
        return json.dumps(text)
    return text


class LogfmtFormatter(logging.Formatter):
    """``key=value`` lines in the style of Prometheus' own discovery adapters.

    Tracebacks are omitted; the exception message is in ``err``.
    """

    def format(self, record: logging.LogRecord) -> str:
        pairs: dict[str, Any] = {
            "ts": _timestamp(record),
            "caller": f"{record.module}.py:{record.lineno}",
            "level": record.levelname.lower(),
            "msg": record.getMessage(),
        }
        pairs.update(record_fields(record))
        return " ".join(f"{key}={_logfmt_value(value)}" for key, value in pairs.items())


def configure_logging(config: LoggingConfig) -> None:
    """Install a single stderr handler on the root logger."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if config.format == "json" else LogfmtFormatter())
    root.addHandler(handler)

    # The OCI SDK logs every request at INFO
    for noisy in ("oci", "urllib3", "requests"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
