"""CLI entrypoint for the issue cloner.

Authenticates with `CLONER_GITHUB_TOKEN` and runs setup or a clone for that user.
"""

from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from github_issue_cloner import __version__
from github_issue_cloner.cloner.clone_service import CloneService
from github_issue_cloner.cloner.config import ClonerSettings
from github_issue_cloner.cloner.errors import CloneError, ProvisionError, RemoteCallError
from github_issue_cloner.cloner.github.client import GitHubClient
from github_issue_cloner.cloner.logging import configure_logging
from github_issue_cloner.cloner.session import CloneResult, CloneSession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="issue-cloner",
        description="Clone GitHub issues and milestones into your own planner repository",
    )
    parser.add_argument(
        "--version", action="version", version=f"github-issue-cloner {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser(
        "setup",
        help="Create or fix the destination repository and link the project board",
    )

    clone = subparsers.add_parser("clone", help="Clone issues from a source repository")
    clone.add_argument(
        "--repo",
        "--repository",
        dest="repository",
        required=True,
        help="Source repository, either 'repo' (under DEFAULT_OWNER) or 'owner/repo'",
    )
    clone.add_argument(
        "--issue",
        dest="issue_number",
        type=int,
        default=None,
        help="Clone only this issue number",
    )
    clone.add_argument(
        "--allow-duplicates",
        action="store_true",
        help="Clone issues even when the destination already has one with the same title",
    )

    list_issues = subparsers.add_parser("list-issues", help="List issues of a source repository")
    list_issues.add_argument(
        "--repo",
        "--repository",
        dest="repository",
        required=True,
        help="Source repository, either 'repo' (under DEFAULT_OWNER) or 'owner/repo'",
    )

    return parser


def _print_result(result: CloneResult) -> None:
    print(
        f"Cloned {result.created} of {result.total} issues "
        f"({result.skipped} skipped, {result.failed} failed, {result.cancelled} cancelled)"
    )
    for outcome in result.outcomes:
        if outcome.status == "failed":
            print(f"  failed: {outcome.title}: {outcome.error}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = ClonerSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    github = GitHubClient(token=settings.github_token, base_url=settings.github_base_url)
    try:
        session = CloneSession.for_client(github)
        service = CloneService(
            session=session,
            destination_repo=settings.default_repo,
            default_owner=settings.default_owner,
            project_query=settings.project_query,
            max_workers=settings.max_workers,
        )

        if args.command == "setup":
            service.initial_setup()
            print(
                f"Repository {session.login}/{settings.default_repo} and project "
                f"{service.project_id} are ready"
            )
            return 0

        if args.command == "clone":
            if args.issue_number is not None:
                result = service.clone_one(args.repository, args.issue_number)
            else:
                result = service.clone_all(
                    args.repository, allow_duplicates=args.allow_duplicates
                )
            _print_result(result)
            return 0

        if args.command == "list-issues":
            for issue in service.list_source_issues(args.repository):
                milestone = f" [{issue.milestone_title}]" if issue.milestone_title else ""
                print(f"#{issue.number} {issue.title}{milestone}")
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except ValueError as e:
        # Bad --repo or --issue values.
        print(f"Invalid argument: {e}", file=sys.stderr)
        return 2

    except (CloneError, ProvisionError, RemoteCallError) as e:
        logger.error(str(e), extra={"command": args.command})
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1

    finally:
        github.close()


if __name__ == "__main__":
    raise SystemExit(main())
