"""Unit tests for JSON log formatting and the clone context."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from github_issue_cloner.cloner.logging import (
    CloneContextFilter,
    JsonFormatter,
    clone_context,
    configure_logging,
    current_clone_context,
)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="github_issue_cloner.cloner.clone_service",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Clone finished for %s",
        args=("Module-JS1",),
        exc_info=None,
    )
    record.__dict__.update(extra)
    return record


def _format(record: logging.LogRecord) -> dict:
    CloneContextFilter().filter(record)
    return json.loads(JsonFormatter().format(record))


def test_formatter_emits_json_with_extra() -> None:
    payload = _format(_record(total=3, created_count=2))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "github_issue_cloner.cloner.clone_service"
    assert payload["message"] == "Clone finished for Module-JS1"
    assert payload["extra"] == {"total": 3, "created_count": 2}
    assert "clone" not in payload


def test_clone_context_is_attached_apart_from_extra() -> None:
    with clone_context(login="trainee", source_repo="CodeYourFuture/Module-JS1"):
        with clone_context(phase="milestones", login=None):
            payload = _format(_record(title="Week 1"))

    assert payload["clone"] == {
        "login": "trainee",
        "source_repo": "CodeYourFuture/Module-JS1",
        "phase": "milestones",
    }
    assert payload["extra"] == {"title": "Week 1"}


def test_clone_context_is_restored_after_block() -> None:
    with clone_context(phase="setup"):
        with clone_context(phase="create"):
            assert current_clone_context() == {"phase": "create"}
        assert current_clone_context() == {"phase": "setup"}

    assert current_clone_context() == {}


def test_formatter_includes_exception() -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = _format(record)

    assert "RuntimeError: boom" in payload["exception"]


def test_configure_logging_does_not_stack_handlers(monkeypatch: pytest.MonkeyPatch) -> None:
    root = logging.getLogger()
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)

    configure_logging("debug")
    configure_logging("info")

    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler.formatter, JsonFormatter)
    assert any(isinstance(f, CloneContextFilter) for f in handler.filters)
    assert root.level == logging.INFO
