"""Idempotent ensure-or-create steps for the destination repository and project board."""

from __future__ import annotations

import logging

from github_issue_cloner.cloner.errors import (
    ConflictError,
    NotFoundError,
    ProvisionError,
    RemoteCallError,
)
from github_issue_cloner.cloner.github.client import GitHubClient, Repository
from github_issue_cloner.cloner.session import ProvisioningState

logger = logging.getLogger(__name__)

# Labels GitHub adds to every new repository.
DEFAULT_LABELS: tuple[str, ...] = (
    "bug",
    "documentation",
    "duplicate",
    "enhancement",
    "good first issue",
    "help wanted",
    "invalid",
    "question",
    "wontfix",
)


def _satisfies_invariants(repo: Repository) -> bool:
    return repo.has_issues and not repo.private and repo.has_projects


class RepositoryProvisioner:
    """Ensure the user's destination repository exists, is public and has issues/projects."""

    def __init__(self, *, github: GitHubClient) -> None:
        self._github = github

    def ensure_repository(self, state: ProvisioningState, name: str) -> str:
        if state.repository_id:
            return state.repository_id

        try:
            repository_id = self._adopt_existing(state.login, name)
        except NotFoundError:
            repository_id = self._create(state.login, name)

        state.repository_id = repository_id
        return repository_id

    def _adopt_existing(self, owner: str, name: str) -> str:
        """Read an existing repository and fix its settings in place when needed.

        Raises:
            NotFoundError if the repository does not exist.
            ProvisionError for any other failure.
        """

        try:
            repo = self._github.get_repository(owner=owner, repo=name)
        except NotFoundError:
            raise
        except RemoteCallError as e:
            raise ProvisionError(f"Could not get {owner}/{name}: {e}") from e

        if not _satisfies_invariants(repo):
            logger.info(
                "Updating repository settings",
                extra={
                    "repo": f"{owner}/{name}",
                    "has_issues": repo.has_issues,
                    "private": repo.private,
                    "has_projects": repo.has_projects,
                },
            )
            try:
                self._github.update_repository(
                    owner=owner, repo=name, has_issues=True, private=False, has_projects=True
                )
            except RemoteCallError as e:
                raise ProvisionError(f"Could not update {owner}/{name}: {e}") from e

        return repo.node_id

    def _create(self, owner: str, name: str) -> str:
        try:
            repo = self._github.create_repository(
                name=name, has_issues=True, private=False, has_projects=True
            )
        except ConflictError:
            # Created concurrently between the existence check and now.
            logger.info(
                "Repository already exists, adopting it", extra={"repo": f"{owner}/{name}"}
            )
            try:
                return self._adopt_existing(owner, name)
            except NotFoundError as e:
                raise ProvisionError(f"Could not create {owner}/{name}: {e}") from e
        except RemoteCallError as e:
            raise ProvisionError(f"Could not create {owner}/{name}: {e}") from e

        self._delete_default_labels(owner, name)
        return repo.node_id

    def _delete_default_labels(self, owner: str, name: str) -> list[str]:
        """Remove GitHub's default labels. Returns the labels that could not be deleted."""

        undeleted: list[str] = []
        for label in DEFAULT_LABELS:
            try:
                self._github.delete_label(owner=owner, repo=name, name=label)
            except RemoteCallError as e:
                undeleted.append(label)
                logger.warning(
                    "Could not delete default label (continuing)",
                    extra={"repo": f"{owner}/{name}", "label": label, "error": str(e)},
                )
        return undeleted


class ProjectProvisioner:
    """Adopt the user's existing Projects (V2) board, link it and make it public.

    Projects are never created here: the user is expected to have copied the template
    board beforehand, and it is discovered by `query`.
    """

    def __init__(self, *, github: GitHubClient, query: str) -> None:
        self._github = github
        self._query = query

    def ensure_project(self, state: ProvisioningState) -> str:
        if state.project_id:
            return state.project_id

        try:
            projects = self._github.list_user_projects(login=state.login, query=self._query)
        except RemoteCallError as e:
            raise ProvisionError(f"Could not get projects for {state.login}: {e}") from e

        if not projects:
            raise ProvisionError(f"No project found that matches {self._query!r} query")
        project = projects[0]

        if not project.repository_ids:
            if not state.repository_id:
                raise ProvisionError(
                    f"Cannot link project {project.id}: no repository has been provisioned"
                )
            try:
                self._github.link_project_to_repository(
                    project_id=project.id, repository_id=state.repository_id
                )
            except RemoteCallError as e:
                raise ProvisionError(
                    f"Could not link project {project.id} to repository "
                    f"{state.repository_id}: {e}"
                ) from e
        else:
            # An existing link wins over a freshly provisioned repository.
            state.repository_id = project.repository_ids[0]

        if not project.public:
            try:
                self._github.make_project_public(project_id=project.id)
            except RemoteCallError as e:
                raise ProvisionError(f"Could not make project {project.id} public: {e}") from e

        state.project_id = project.id
        logger.info(
            "Project ready",
            extra={"project_id": project.id, "repository_id": state.repository_id},
        )
        return project.id
