"""Unit tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from github_issue_cloner.cloner.config import ClonerSettings
from github_issue_cloner.server.config import ServerSettings

_ENV_VARS = (
    "CLONER_GITHUB_TOKEN",
    "GITHUB_BASE_URL",
    "LOG_LEVEL",
    "DEFAULT_OWNER",
    "DEFAULT_REPO",
    "CLONER_PROJECT_QUERY",
    "CLONER_MAX_WORKERS",
    "CLIENT_URLS",
)


@pytest.fixture(autouse=True)
def _clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_settings_loads_from_dotenv(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "\n".join(
            [
                "CLONER_GITHUB_TOKEN=test-token",
                "LOG_LEVEL=DEBUG",
                "DEFAULT_REPO=Planner",
                "CLONER_MAX_WORKERS=4",
                "",
            ]
        ),
        encoding="utf-8",
    )

    settings = ClonerSettings()

    assert settings.github_token == "test-token"
    assert settings.log_level == "DEBUG"
    assert settings.default_repo == "Planner"
    assert settings.max_workers == 4


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLONER_GITHUB_TOKEN", "test-token")

    settings = ClonerSettings()

    assert settings.github_base_url == "https://api.github.com"
    assert settings.default_owner == "CodeYourFuture"
    assert settings.default_repo == "My-Coursework-Planner"
    assert settings.project_query == "coursework planner"
    assert settings.max_workers == 1


def test_cli_settings_require_token() -> None:
    with pytest.raises(ValidationError, match="CLONER_GITHUB_TOKEN is required"):
        ClonerSettings()


def test_worker_count_is_bounded(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLONER_GITHUB_TOKEN", "test-token")
    monkeypatch.setenv("CLONER_MAX_WORKERS", "0")

    with pytest.raises(ValidationError):
        ClonerSettings()


def test_server_settings_need_no_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CLIENT_URLS", "http://localhost:3000, https://planner.example.org,")

    settings = ServerSettings()

    assert settings.parsed_cors_origins() == [
        "http://localhost:3000",
        "https://planner.example.org",
    ]
