#!/usr/bin/env python3
"""Programmatic clone example.

This demonstrates using the cloner components directly:

* load settings from `.env`
* resolve the token owner and prepare their planner repository
* clone one source repository, stopping early on Ctrl+C

The source repository is passed as an argument (not read from `.env`).
"""

from __future__ import annotations

import argparse
import signal
import threading
from typing import Sequence

from github_issue_cloner.cloner.clone_service import CloneService
from github_issue_cloner.cloner.config import ClonerSettings
from github_issue_cloner.cloner.github.client import GitHubClient
from github_issue_cloner.cloner.logging import configure_logging
from github_issue_cloner.cloner.session import CloneSession


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clone issues (programmatic example).")
    parser.add_argument("--repo", required=True, help='Source repository, "repo" or "owner/repo"')
    parser.add_argument(
        "--allow-duplicates",
        action="store_true",
        help="Clone issues whose titles already exist in the destination",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = ClonerSettings()
    configure_logging(settings.log_level)

    cancel = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: cancel.set())

    github = GitHubClient(token=settings.github_token, base_url=settings.github_base_url)
    try:
        service = CloneService(
            session=CloneSession.for_client(github),
            destination_repo=settings.default_repo,
            default_owner=settings.default_owner,
            project_query=settings.project_query,
            max_workers=settings.max_workers,
        )
        result = service.clone_all(
            args.repo, allow_duplicates=args.allow_duplicates, cancel_event=cancel
        )
    finally:
        github.close()

    for outcome in result.outcomes:
        print(f"{outcome.status:>9}  {outcome.title}")
    print(result.as_dict())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
