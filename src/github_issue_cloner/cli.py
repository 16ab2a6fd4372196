"""Console script entrypoint; the CLI lives in `github_issue_cloner.cloner.main`."""

from __future__ import annotations

from github_issue_cloner.cloner.main import main

__all__ = ["main"]


if __name__ == "__main__":
    raise SystemExit(main())
