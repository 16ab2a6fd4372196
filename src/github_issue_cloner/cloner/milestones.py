"""Milestone reconciliation between a source repository and the user's repository.

Milestone numbers are not portable across repositories, so milestones are matched by
title and the resulting title -> number map is used when creating cloned issues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from github_issue_cloner.cloner.errors import RemoteCallError
from github_issue_cloner.cloner.github.client import GitHubClient, Milestone
from github_issue_cloner.cloner.session import MilestoneMap

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconcileReport:
    """Titles already present, created, and failed during one reconciliation."""

    existing: tuple[str, ...]
    created: tuple[str, ...]
    failed: tuple[str, ...]


def unique_candidates(milestones: list[Milestone], known: MilestoneMap) -> list[Milestone]:
    """Milestones with a title that is not yet mapped, with exact duplicates collapsed.

    Order of first occurrence is preserved.
    """

    candidates = [m for m in milestones if m.title and m.title not in known]
    return list(dict.fromkeys(candidates))


class MilestoneReconciler:
    def __init__(self, *, github: GitHubClient, owner: str, repo: str) -> None:
        self._github = github
        self._owner = owner
        self._repo = repo

    def reconcile(
        self, milestones: MilestoneMap, source_owner: str, source_repo: str
    ) -> ReconcileReport:
        """Map the destination's milestones, then create the source's missing ones.

        Listing failures propagate as RemoteCallError. A failure to create a single
        milestone is logged and does not stop the remaining candidates.
        """

        existing: list[str] = []
        for milestone in self._github.list_milestones(owner=self._owner, repo=self._repo):
            if milestones.record(milestone.title, milestone.number):
                existing.append(milestone.title)

        source = self._github.list_milestones(owner=source_owner, repo=source_repo, state="all")
        candidates = unique_candidates(source, milestones)

        created: list[str] = []
        failed: list[str] = []
        for candidate in candidates:
            if candidate.title in milestones:
                # Same title as an earlier candidate, different content.
                logger.debug(
                    "Skipping milestone with duplicate title", extra={"title": candidate.title}
                )
                continue
            if self._create(milestones, candidate):
                created.append(candidate.title)
            else:
                failed.append(candidate.title)

        logger.info(
            "Milestones reconciled",
            extra={
                "repo": f"{self._owner}/{self._repo}",
                "source_repo": f"{source_owner}/{source_repo}",
                "existing_count": len(existing),
                "created_count": len(created),
                "failed_count": len(failed),
            },
        )
        return ReconcileReport(
            existing=tuple(existing), created=tuple(created), failed=tuple(failed)
        )

    def _create(self, milestones: MilestoneMap, candidate: Milestone) -> bool:
        try:
            created = self._github.create_milestone(
                owner=self._owner,
                repo=self._repo,
                title=candidate.title,
                description=candidate.description,
                state="open",
                due_on=candidate.due_on,
            )
        except RemoteCallError as e:
            logger.warning(
                "Could not create milestone (continuing)",
                extra={"title": candidate.title, "error": str(e)},
            )
            return False

        milestones.record(candidate.title, created.number)
        return True
