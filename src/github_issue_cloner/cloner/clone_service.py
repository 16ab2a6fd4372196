"""Clone orchestration: setup, milestone reconciliation and per-issue creation.

GitHub has no multi-item transactions, so a clone is best-effort with accurate accounting:
setup and listing failures abort the request, while a failure to create one issue is
counted in the result and the batch carries on.
"""

from __future__ import annotations

import contextvars
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from contextlib import AbstractContextManager

from github_issue_cloner.cloner.errors import (
    CloneError,
    NoIssuesError,
    ProvisionError,
    RemoteCallError,
)
from github_issue_cloner.cloner.github.client import Issue
from github_issue_cloner.cloner.logging import clone_context
from github_issue_cloner.cloner.milestones import MilestoneReconciler
from github_issue_cloner.cloner.provisioning import ProjectProvisioner, RepositoryProvisioner
from github_issue_cloner.cloner.session import CloneResult, CloneSession

logger = logging.getLogger(__name__)


class CloneService:
    """Clone issues and milestones from a source repository into the user's repository."""

    def __init__(
        self,
        *,
        session: CloneSession,
        destination_repo: str,
        default_owner: str,
        project_query: str,
        max_workers: int = 1,
    ) -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")

        self._session = session
        self._github = session.client
        self._destination_repo = destination_repo
        self._default_owner = default_owner
        self._max_workers = max_workers

        self._repositories = RepositoryProvisioner(github=self._github)
        self._projects = ProjectProvisioner(github=self._github, query=project_query)
        self._milestones = MilestoneReconciler(
            github=self._github, owner=session.login, repo=destination_repo
        )

    @property
    def repository_id(self) -> str | None:
        return self._session.state.repository_id

    @property
    def project_id(self) -> str | None:
        return self._session.state.project_id

    def _split_source(self, source_repo: str) -> tuple[str, str]:
        normalized = source_repo.strip().strip("/")
        if not normalized:
            raise ValueError("source repository is required")
        if "/" in normalized:
            owner, name = normalized.split("/", 1)
            return owner, name
        return self._default_owner, normalized

    def initial_setup(self) -> str:
        """Ensure the destination repository and project board are ready.

        Safe to call repeatedly: once the session state holds both ids, this makes no
        remote calls.
        """

        self._repositories.ensure_repository(self._session.state, self._destination_repo)
        self._projects.ensure_project(self._session.state)
        return "OK"

    def list_source_issues(self, source_repo: str) -> list[Issue]:
        owner, name = self._split_source(source_repo)
        try:
            return self._github.list_issues(owner=owner, repo=name)
        except RemoteCallError as e:
            raise CloneError(f"Could not get issues for {owner}/{name}: {e}", phase="list") from e

    def clone_all(
        self,
        source_repo: str,
        *,
        allow_duplicates: bool = False,
        cancel_event: threading.Event | None = None,
    ) -> CloneResult:
        """Clone every issue of `source_repo` that has a body.

        Unless `allow_duplicates` is set, issues whose title already exists in the
        destination are skipped. Setting `cancel_event` stops new creations; issues not
        yet attempted are reported as cancelled.
        """

        owner, name = self._split_source(source_repo)
        with self._clone_context(owner, name):
            with clone_context(phase="list"):
                issues = self.list_source_issues(source_repo)
            if not issues:
                raise NoIssuesError(f"No issues found in {owner}/{name}")

            self._prepare(owner, name)
            with clone_context(phase="duplicates"):
                existing_titles = set() if allow_duplicates else self._destination_titles()

            result = CloneResult(total=len(issues))
            pending: list[Issue] = []
            for issue in issues:
                if not issue.body or issue.title in existing_titles:
                    result.record_skipped(issue.title)
                    continue
                pending.append(issue)

            with clone_context(phase="create"):
                self._create_all(pending, result, cancel_event)

            logger.info(
                "Clone finished",
                extra={
                    "total": result.total,
                    "created_count": result.created,
                    "failed": result.failed,
                    "skipped": result.skipped,
                    "cancelled": result.cancelled,
                },
            )
            return result

    def clone_one(self, source_repo: str, issue_number: int) -> CloneResult:
        """Clone a single issue.

        The empty-body and duplicate-title filters of `clone_all` are not applied: cloning
        one issue is an explicit request.
        """

        if issue_number <= 0:
            raise ValueError("issue number must be a positive integer")
        owner, name = self._split_source(source_repo)
        with self._clone_context(owner, name):
            try:
                issue = self._github.get_issue(owner=owner, repo=name, issue_number=issue_number)
            except RemoteCallError as e:
                raise CloneError(
                    f"Could not get issue {issue_number} from {owner}/{name}: {e}", phase="list"
                ) from e

            self._prepare(owner, name)

            result = CloneResult(total=1)
            with clone_context(phase="create"):
                self._create_issue(issue, result)
            return result

    def _clone_context(self, source_owner: str, source_repo: str) -> AbstractContextManager[None]:
        return clone_context(
            login=self._session.login,
            source_repo=f"{source_owner}/{source_repo}",
            destination_repo=f"{self._session.login}/{self._destination_repo}",
        )

    def _prepare(self, source_owner: str, source_repo: str) -> None:
        with clone_context(phase="setup"):
            try:
                self.initial_setup()
            except (ProvisionError, RemoteCallError) as e:
                raise CloneError(str(e), phase="setup") from e

        with clone_context(phase="milestones"):
            try:
                self._milestones.reconcile(self._session.milestones, source_owner, source_repo)
            except RemoteCallError as e:
                raise CloneError(str(e), phase="milestones") from e

    def _destination_titles(self) -> set[str]:
        try:
            existing = self._github.list_issues(
                owner=self._session.login, repo=self._destination_repo, state="all"
            )
        except RemoteCallError as e:
            raise CloneError(str(e), phase="duplicates") from e
        return {issue.title for issue in existing if issue.title}

    def _create_all(
        self,
        issues: list[Issue],
        result: CloneResult,
        cancel_event: threading.Event | None,
    ) -> None:
        if self._max_workers == 1 or len(issues) <= 1:
            for issue in issues:
                self._create_unless_cancelled(issue, result, cancel_event)
            return

        with ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="clone-issue"
        ) as pool:
            # Worker threads start with an empty context; carry the clone context over.
            futures = [
                pool.submit(
                    contextvars.copy_context().run,
                    self._create_unless_cancelled,
                    issue,
                    result,
                    cancel_event,
                )
                for issue in issues
            ]
            for future in futures:
                future.result()

    def _create_unless_cancelled(
        self,
        issue: Issue,
        result: CloneResult,
        cancel_event: threading.Event | None,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            result.record_cancelled(issue.title)
            return
        self._create_issue(issue, result)

    def _create_issue(self, issue: Issue, result: CloneResult) -> None:
        """Create one destination issue; failures are counted, never raised."""

        login = self._session.login
        try:
            created = self._github.create_issue(
                owner=login,
                repo=self._destination_repo,
                title=issue.title,
                body=issue.body,
                assignees=[login],
                milestone=self._session.milestones.get(issue.milestone_title),
                labels=list(issue.labels),
            )
        except Exception as e:
            logger.exception(
                "Issue creation failed (continuing)",
                extra={"title": issue.title, "source_issue_number": issue.number},
            )
            result.record_failure(issue.title, str(e))
            return

        result.record_created(issue.title, created.number)

        project_id = self._session.state.project_id
        if not project_id:
            return
        try:
            self._github.add_item_to_project(project_id=project_id, content_id=created.node_id)
        except Exception as e:
            logger.warning(
                "Could not add issue to project (continuing)",
                extra={
                    "issue_number": created.number,
                    "project_id": project_id,
                    "error": str(e),
                },
            )
