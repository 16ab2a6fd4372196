"""JSON logging for clone runs.

Every record is one JSON object. Records emitted while a clone is in progress carry the
clone's context (user, source, destination, phase) under "clone", so the lines of one
request can be grouped without threading identifiers through every log call.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

_CLONE_CONTEXT: ContextVar[dict[str, str]] = ContextVar("clone_context", default={})

# Attributes every LogRecord has; anything else on a record came from `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "clone"}


@contextmanager
def clone_context(**fields: str | None) -> Iterator[None]:
    """Add `fields` to the clone context of log records emitted inside the block.

    Contexts nest; inner fields override outer ones and `None` values are ignored.
    """

    current = _CLONE_CONTEXT.get()
    token = _CLONE_CONTEXT.set(
        {**current, **{key: value for key, value in fields.items() if value is not None}}
    )
    try:
        yield
    finally:
        _CLONE_CONTEXT.reset(token)


def current_clone_context() -> dict[str, str]:
    return dict(_CLONE_CONTEXT.get())


class CloneContextFilter(logging.Filter):
    """Attach the active clone context to each record as `record.clone`."""

    def filter(self, record: logging.LogRecord) -> bool:
        context = _CLONE_CONTEXT.get()
        if context and not hasattr(record, "clone"):
            record.clone = dict(context)
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        clone = getattr(record, "clone", None)
        if clone:
            payload["clone"] = clone

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging(level: str) -> None:
    """Send JSON lines to stdout at `level`, replacing any existing root handlers."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(CloneContextFilter())

    root.addHandler(handler)
    root.setLevel(level.upper())

    # PyGithub and urllib3 request logs would drown out the clone run at DEBUG.
    for name in ("github", "urllib3"):
        logging.getLogger(name).setLevel(max(root.level, logging.INFO))
