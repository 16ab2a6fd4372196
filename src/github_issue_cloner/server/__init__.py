"""FastAPI server adapter for github-issue-cloner.

Design intent:
- Keep business logic in `github_issue_cloner.cloner.*`
- Keep server-specific concerns (routing, CORS, per-request sessions) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from github_issue_cloner.server.app import create_app
