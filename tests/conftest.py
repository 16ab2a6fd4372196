"""Test configuration and fixtures."""

from __future__ import annotations

import itertools
from collections.abc import Callable
from unittest.mock import Mock

import pytest

from github_issue_cloner.cloner.clone_service import CloneService
from github_issue_cloner.cloner.github.client import (
    AuthenticatedUser,
    CreatedIssue,
    GitHubClient,
    Issue,
    Milestone,
    Project,
    Repository,
)
from github_issue_cloner.cloner.session import CloneSession, ProvisioningState

LOGIN = "trainee"
DEST_REPO = "My-Coursework-Planner"
SOURCE_OWNER = "CodeYourFuture"
SOURCE_REPO = "Module-JS1"


def by_repo(mapping: dict[str, list]) -> Callable[..., list]:
    """side_effect for list_issues/list_milestones keyed by "owner/repo"."""

    def _lookup(*, owner: str, repo: str, state: str = "open") -> list:
        return list(mapping.get(f"{owner}/{repo}", []))

    return _lookup


@pytest.fixture
def github() -> Mock:
    """A GitHub client whose user already has a ready repository and linked project."""

    mock = Mock(spec=GitHubClient)
    mock.get_authenticated_user.return_value = AuthenticatedUser(login=LOGIN, node_id="U_1")
    mock.get_repository.return_value = Repository(
        node_id="R_dest",
        name=DEST_REPO,
        full_name=f"{LOGIN}/{DEST_REPO}",
        private=False,
        has_issues=True,
        has_projects=True,
    )
    mock.list_user_projects.return_value = [
        Project(id="PVT_1", title="Coursework Planner", public=True, repository_ids=("R_dest",))
    ]
    mock.list_milestones.return_value = []
    mock.list_issues.return_value = []

    numbers = itertools.count(1)

    def _create_issue(**kwargs: object) -> CreatedIssue:
        number = next(numbers)
        return CreatedIssue(number=number, node_id=f"I_{number}", title=str(kwargs["title"]))

    mock.create_issue.side_effect = _create_issue
    mock.add_item_to_project.return_value = "PVTI_1"
    return mock


@pytest.fixture
def session(github: Mock) -> CloneSession:
    return CloneSession(client=github, state=ProvisioningState(login=LOGIN, user_node_id="U_1"))


@pytest.fixture
def make_service(session: CloneSession) -> Callable[..., CloneService]:
    def _make(max_workers: int = 1) -> CloneService:
        return CloneService(
            session=session,
            destination_repo=DEST_REPO,
            default_owner=SOURCE_OWNER,
            project_query="coursework planner",
            max_workers=max_workers,
        )

    return _make


def issue(
    number: int,
    title: str,
    body: str | None = "Do the thing",
    *,
    labels: tuple[str, ...] = (),
    milestone: str | None = None,
) -> Issue:
    return Issue(
        number=number,
        title=title,
        body=body,
        labels=labels,
        milestone_title=milestone,
        node_id=f"SRC_{number}",
    )


def milestone(title: str, number: int = 0, **kwargs: str | None) -> Milestone:
    return Milestone(title=title, number=number, **kwargs)
