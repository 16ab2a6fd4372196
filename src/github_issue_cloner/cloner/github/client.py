"""GitHub API client wrapper for the clone workflow.

This wraps PyGithub (identity, repository creation) and a `requests` session (REST and
GraphQL) so the provisioning and cloning services never touch HTTP directly and tests can
swap the whole client for a mock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlparse, urlunparse

import requests
from github import Auth, Github, GithubException

from github_issue_cloner.cloner.errors import ConflictError, NotFoundError, RemoteCallError
from github_issue_cloner.cloner.github.queries import (
    ADD_ITEM_TO_PROJECT_MUTATION,
    LINK_PROJECT_TO_REPOSITORY_MUTATION,
    MAKE_PROJECT_PUBLIC_MUTATION,
    USER_PROJECTS_QUERY,
)

logger = logging.getLogger(__name__)

_PER_PAGE = 100


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    """The user behind the token."""

    login: str
    node_id: str


@dataclass(frozen=True, slots=True)
class Issue:
    """Read-only view of a source issue."""

    number: int
    title: str
    body: str | None
    labels: tuple[str, ...] = ()
    milestone_title: str | None = None
    node_id: str = ""


@dataclass(frozen=True, slots=True)
class CreatedIssue:
    """Minimal issue metadata returned after creation."""

    number: int
    node_id: str
    title: str


@dataclass(frozen=True, slots=True)
class Milestone:
    """A repository milestone.

    Equality covers the portable content only; `number` is scoped to a single repository.
    """

    title: str
    description: str | None = None
    due_on: str | None = None
    state: str = "open"
    number: int = field(default=0, compare=False)


@dataclass(frozen=True, slots=True)
class Repository:
    node_id: str
    name: str
    full_name: str
    private: bool
    has_issues: bool
    has_projects: bool


@dataclass(frozen=True, slots=True)
class Project:
    """A Projects (V2) board owned by the user."""

    id: str
    title: str
    public: bool
    repository_ids: tuple[str, ...] = ()


class GitHubClient:
    """Small wrapper around PyGithub and the GitHub REST/GraphQL APIs for cloning."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://api.github.com",
        github_api: Github | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")

        self._rest_base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "github-issue-cloner",
            }
        )
        self._github = github_api or Github(auth=Auth.Token(token), base_url=self._rest_base_url)

    def _repo_url(self, *, owner: str, repo: str, path: str = "") -> str:
        base = f"{self._rest_base_url}/repos/{owner.strip()}/{repo.strip().strip('/')}"
        path = path.lstrip("/")
        return f"{base}/{path}" if path else base

    def _graphql_url(self) -> str:
        """Derive the GraphQL endpoint from the REST base URL.

        GitHub.com serves REST at https://api.github.com and GraphQL at /graphql; GitHub
        Enterprise serves REST at /api/v3 and GraphQL at /api/graphql.
        """

        parsed = urlparse(self._rest_base_url)
        path = parsed.path.rstrip("/")

        if path.endswith("/api/v3"):
            path = path[: -len("/api/v3")] + "/api/graphql"
        elif path.endswith("/api"):
            path = path + "/graphql"
        elif path == "":
            path = "/graphql"
        else:
            path = path + "/graphql"

        return urlunparse(parsed._replace(path=path))

    @staticmethod
    def _error_message(resp: requests.Response) -> str:
        try:
            payload = resp.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            message = payload.get("message")
            if isinstance(message, str) and message.strip():
                return message
        return f"HTTP {resp.status_code}"

    def _request(self, method: str, url: str, *, action: str, **kwargs: Any) -> requests.Response:
        """Issue a REST call and translate failures into the cloner's error types."""

        try:
            resp = self._session.request(method, url, timeout=30, **kwargs)
        except requests.RequestException as e:
            raise RemoteCallError(f"{action} failed: {e}") from e

        if resp.status_code < 400:
            return resp

        message = f"{action} failed: {self._error_message(resp)}"
        if resp.status_code == 404:
            raise NotFoundError(message, status=404)
        if resp.status_code == 422:
            raise ConflictError(message, status=422)
        raise RemoteCallError(message, status=resp.status_code)

    @staticmethod
    def _json(resp: requests.Response, *, action: str) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise RemoteCallError(
                f"{action} failed: response is not JSON", status=resp.status_code
            ) from e

    def _get_paginated_json_list(
        self, url: str, *, action: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Fetch every page of a REST endpoint that returns a JSON list."""

        items: list[dict[str, Any]] = []
        page = 1
        while True:
            query = dict(params or {})
            query.update({"per_page": _PER_PAGE, "page": page})
            resp = self._request("GET", url, action=action, params=query)
            payload = self._json(resp, action=action)
            if not isinstance(payload, list):
                break

            items.extend(p for p in payload if isinstance(p, dict))
            if len(payload) < _PER_PAGE:
                break
            page += 1
        return items

    def _graphql(self, *, query: str, variables: dict[str, Any], action: str) -> dict[str, Any]:
        url = self._graphql_url()
        resp = self._request(
            "POST", url, action=action, json={"query": query, "variables": variables}
        )
        payload = self._json(resp, action=action)
        if not isinstance(payload, dict):
            raise RemoteCallError(f"{action} failed: unexpected GraphQL response")
        errors = payload.get("errors")
        if errors:
            messages = []
            if isinstance(errors, list):
                for item in errors:
                    if isinstance(item, dict):
                        msg = item.get("message")
                        if isinstance(msg, str):
                            messages.append(msg)
            message = "; ".join(messages) if messages else "Unknown GraphQL error"
            raise RemoteCallError(f"{action} failed: GitHub GraphQL error: {message}")
        data = payload.get("data")
        return data if isinstance(data, dict) else {}

    @staticmethod
    def _parse_issue(data: dict[str, Any]) -> Issue | None:
        # The issues endpoint also returns pull requests.
        if "pull_request" in data:
            return None

        number = data.get("number")
        title = data.get("title")
        if not isinstance(number, int) or not isinstance(title, str):
            return None

        body = data.get("body")
        labels: list[str] = []
        raw_labels = data.get("labels")
        if isinstance(raw_labels, list):
            for label in raw_labels:
                name = label.get("name") if isinstance(label, dict) else label
                if isinstance(name, str) and name.strip():
                    labels.append(name)

        milestone = data.get("milestone")
        milestone_title = milestone.get("title") if isinstance(milestone, dict) else None

        node_id = data.get("node_id")
        return Issue(
            number=number,
            title=title,
            body=body if isinstance(body, str) else None,
            labels=tuple(labels),
            milestone_title=milestone_title if isinstance(milestone_title, str) else None,
            node_id=node_id if isinstance(node_id, str) else "",
        )

    @staticmethod
    def _parse_milestone(data: dict[str, Any]) -> Milestone | None:
        title = data.get("title")
        number = data.get("number")
        if not isinstance(title, str) or not isinstance(number, int):
            return None

        description = data.get("description")
        due_on = data.get("due_on")
        state = data.get("state")
        return Milestone(
            title=title,
            description=description if isinstance(description, str) else None,
            due_on=due_on if isinstance(due_on, str) else None,
            state=state if isinstance(state, str) else "open",
            number=number,
        )

    @staticmethod
    def _parse_repository(data: dict[str, Any]) -> Repository:
        node_id = data.get("node_id")
        if not isinstance(node_id, str) or not node_id.strip():
            raise RemoteCallError("Unexpected repository response: missing node_id")
        return Repository(
            node_id=node_id,
            name=str(data.get("name") or ""),
            full_name=str(data.get("full_name") or ""),
            private=bool(data.get("private")),
            has_issues=bool(data.get("has_issues")),
            has_projects=bool(data.get("has_projects")),
        )

    def get_authenticated_user(self) -> AuthenticatedUser:
        """Resolve the login and node id of the token's owner."""

        try:
            user = self._github.get_user()
            login = user.login
            node_id = user.node_id
        except GithubException as e:
            raise RemoteCallError(
                f"Could not get authenticated user: {e.data or e}", status=e.status
            ) from e
        return AuthenticatedUser(login=login, node_id=node_id)

    def list_issues(self, *, owner: str, repo: str, state: str = "open") -> list[Issue]:
        url = self._repo_url(owner=owner, repo=repo, path="issues")
        raw = self._get_paginated_json_list(
            url, action=f"List issues for {owner}/{repo}", params={"state": state}
        )
        issues = [issue for issue in (self._parse_issue(item) for item in raw) if issue]
        logger.debug(
            "Issues listed", extra={"repo": f"{owner}/{repo}", "issue_count": len(issues)}
        )
        return issues

    def get_issue(self, *, owner: str, repo: str, issue_number: int) -> Issue:
        if issue_number <= 0:
            raise ValueError("issue_number must be a positive integer")
        url = self._repo_url(owner=owner, repo=repo, path=f"issues/{issue_number}")
        action = f"Get issue {owner}/{repo}#{issue_number}"
        data = self._json(self._request("GET", url, action=action), action=action)
        issue = self._parse_issue(data) if isinstance(data, dict) else None
        if issue is None:
            raise NotFoundError(f"{owner}/{repo}#{issue_number} is not an issue", status=404)
        return issue

    def list_milestones(self, *, owner: str, repo: str, state: str = "all") -> list[Milestone]:
        url = self._repo_url(owner=owner, repo=repo, path="milestones")
        raw = self._get_paginated_json_list(
            url, action=f"List milestones for {owner}/{repo}", params={"state": state}
        )
        return [m for m in (self._parse_milestone(item) for item in raw) if m is not None]

    def create_milestone(
        self,
        *,
        owner: str,
        repo: str,
        title: str,
        description: str | None = None,
        state: str = "open",
        due_on: str | None = None,
    ) -> Milestone:
        if not title.strip():
            raise ValueError("Milestone title is required")

        payload: dict[str, Any] = {"title": title, "state": state}
        if description:
            payload["description"] = description
        if due_on:
            payload["due_on"] = due_on

        url = self._repo_url(owner=owner, repo=repo, path="milestones")
        action = f"Create milestone {title!r}"
        data = self._json(self._request("POST", url, action=action, json=payload), action=action)
        milestone = self._parse_milestone(data) if isinstance(data, dict) else None
        if milestone is None:
            raise RemoteCallError("Unexpected create milestone response: missing number")
        return milestone

    def create_issue(
        self,
        *,
        owner: str,
        repo: str,
        title: str,
        body: str | None,
        assignees: list[str] | None = None,
        milestone: int | None = None,
        labels: list[str] | None = None,
    ) -> CreatedIssue:
        if not title.strip():
            raise ValueError("Issue title is required")

        payload: dict[str, Any] = {
            "title": title,
            "body": body or "",
            "assignees": assignees or [],
            "labels": labels or [],
        }
        if milestone is not None:
            payload["milestone"] = milestone

        url = self._repo_url(owner=owner, repo=repo, path="issues")
        action = f"Create issue {title!r}"
        data = self._json(self._request("POST", url, action=action, json=payload), action=action)
        if not isinstance(data, dict):
            raise RemoteCallError("Unexpected create issue response: not an object")

        number = data.get("number")
        node_id = data.get("node_id")
        if not isinstance(number, int) or not isinstance(node_id, str):
            raise RemoteCallError("Unexpected create issue response: missing number/node_id")
        return CreatedIssue(number=number, node_id=node_id, title=str(data.get("title") or title))

    def get_repository(self, *, owner: str, repo: str) -> Repository:
        url = self._repo_url(owner=owner, repo=repo)
        action = f"Get repository {owner}/{repo}"
        data = self._json(self._request("GET", url, action=action), action=action)
        if not isinstance(data, dict):
            raise RemoteCallError(f"{action} failed: unexpected response")
        return self._parse_repository(data)

    def create_repository(
        self,
        *,
        name: str,
        has_issues: bool = True,
        private: bool = False,
        has_projects: bool = True,
    ) -> Repository:
        try:
            created = self._github.get_user().create_repo(
                name,
                private=private,
                has_issues=has_issues,
                has_projects=has_projects,
            )
        except GithubException as e:
            message = f"Create repository {name!r} failed: {e.data or e}"
            if e.status == 422:
                raise ConflictError(message, status=422) from e
            raise RemoteCallError(message, status=e.status) from e

        logger.info("Repository created", extra={"repo": created.full_name})
        return Repository(
            node_id=created.node_id,
            name=created.name,
            full_name=created.full_name,
            private=created.private,
            has_issues=created.has_issues,
            has_projects=created.has_projects,
        )

    def update_repository(
        self,
        *,
        owner: str,
        repo: str,
        has_issues: bool = True,
        private: bool = False,
        has_projects: bool = True,
    ) -> None:
        url = self._repo_url(owner=owner, repo=repo)
        payload = {"has_issues": has_issues, "private": private, "has_projects": has_projects}
        self._request("PATCH", url, action=f"Update repository {owner}/{repo}", json=payload)

    def delete_label(self, *, owner: str, repo: str, name: str) -> None:
        url = self._repo_url(owner=owner, repo=repo, path=f"labels/{quote(name, safe='')}")
        self._request("DELETE", url, action=f"Delete label {name!r}")

    def list_user_projects(self, *, login: str, query: str) -> list[Project]:
        data = self._graphql(
            query=USER_PROJECTS_QUERY,
            variables={"login": login, "query": query},
            action=f"List projects for {login}",
        )
        user = data.get("user")
        projects_conn = user.get("projectsV2") if isinstance(user, dict) else None
        nodes = projects_conn.get("nodes") if isinstance(projects_conn, dict) else None
        if not isinstance(nodes, list):
            return []

        projects: list[Project] = []
        for node in nodes:
            if not isinstance(node, dict):
                continue
            project_id = node.get("id")
            if not isinstance(project_id, str) or not project_id.strip():
                continue
            repos = node.get("repositories")
            repo_nodes = repos.get("nodes") if isinstance(repos, dict) else None
            repository_ids = tuple(
                r["id"]
                for r in (repo_nodes or [])
                if isinstance(r, dict) and isinstance(r.get("id"), str)
            )
            projects.append(
                Project(
                    id=project_id,
                    title=str(node.get("title") or ""),
                    public=bool(node.get("public")),
                    repository_ids=repository_ids,
                )
            )
        return projects

    def link_project_to_repository(self, *, project_id: str, repository_id: str) -> None:
        self._graphql(
            query=LINK_PROJECT_TO_REPOSITORY_MUTATION,
            variables={"projectId": project_id, "repositoryId": repository_id},
            action=f"Link project {project_id} to repository {repository_id}",
        )

    def make_project_public(self, *, project_id: str) -> None:
        self._graphql(
            query=MAKE_PROJECT_PUBLIC_MUTATION,
            variables={"projectId": project_id},
            action=f"Make project {project_id} public",
        )

    def add_item_to_project(self, *, project_id: str, content_id: str) -> str:
        data = self._graphql(
            query=ADD_ITEM_TO_PROJECT_MUTATION,
            variables={"projectId": project_id, "contentId": content_id},
            action=f"Add item {content_id} to project {project_id}",
        )
        added = data.get("addProjectV2ItemById")
        item = added.get("item") if isinstance(added, dict) else None
        item_id = item.get("id") if isinstance(item, dict) else None
        return item_id if isinstance(item_id, str) else ""

    def close(self) -> None:
        self._session.close()
        self._github.close()
