"""Unit tests for the command-line entrypoint."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest
from conftest import SOURCE_OWNER, SOURCE_REPO, by_repo, issue

import github_issue_cloner.cloner.main as main_module
from github_issue_cloner.cloner.main import main


@pytest.fixture
def cli_env(github: Mock, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Mock:
    for name in ("DEFAULT_OWNER", "DEFAULT_REPO", "CLONER_MAX_WORKERS", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CLONER_GITHUB_TOKEN", "test-token")
    monkeypatch.setattr(main_module, "configure_logging", lambda _level: None)
    monkeypatch.setattr(main_module, "GitHubClient", lambda **_kwargs: github)
    return github


def test_missing_token_is_a_configuration_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv("CLONER_GITHUB_TOKEN", raising=False)
    monkeypatch.chdir(tmp_path)

    assert main(["setup"]) == 2
    assert "Configuration error" in capsys.readouterr().err


def test_setup(cli_env: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["setup"]) == 0

    assert "PVT_1" in capsys.readouterr().out
    cli_env.close.assert_called_once()


def test_clone_prints_counts(cli_env: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli_env.list_issues.side_effect = by_repo(
        {f"{SOURCE_OWNER}/{SOURCE_REPO}": [issue(1, "A"), issue(2, "B", "")]}
    )

    assert main(["clone", "--repo", SOURCE_REPO]) == 0

    out = capsys.readouterr().out
    assert "Cloned 1 of 2 issues (1 skipped, 0 failed, 0 cancelled)" in out


def test_clone_without_issues_exits_with_error(
    cli_env: Mock, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(["clone", "--repo", SOURCE_REPO]) == 3

    assert "No issues found" in capsys.readouterr().err
    cli_env.close.assert_called_once()


def test_list_issues(cli_env: Mock, capsys: pytest.CaptureFixture[str]) -> None:
    cli_env.list_issues.side_effect = by_repo(
        {"someone/else": [issue(4, "Read", milestone="Week 2")]}
    )

    assert main(["list-issues", "--repo", "someone/else"]) == 0

    assert "#4 Read [Week 2]" in capsys.readouterr().out


@pytest.mark.parametrize(
    "argv", [["clone", "--repo", "/"], ["clone", "--repo", "x", "--issue", "0"]]
)
def test_invalid_arguments_exit_with_usage_error(
    cli_env: Mock, argv: list[str], capsys: pytest.CaptureFixture[str]
) -> None:
    assert main(argv) == 2

    assert "Invalid argument" in capsys.readouterr().err
    cli_env.create_issue.assert_not_called()
    cli_env.close.assert_called_once()
