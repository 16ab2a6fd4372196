"""Unit tests for milestone reconciliation."""

from __future__ import annotations

from unittest.mock import Mock

from conftest import DEST_REPO, LOGIN, SOURCE_OWNER, SOURCE_REPO, by_repo, milestone

from github_issue_cloner.cloner.errors import RemoteCallError
from github_issue_cloner.cloner.github.client import Milestone
from github_issue_cloner.cloner.milestones import MilestoneReconciler, unique_candidates
from github_issue_cloner.cloner.session import MilestoneMap

SOURCE = f"{SOURCE_OWNER}/{SOURCE_REPO}"
DEST = f"{LOGIN}/{DEST_REPO}"


def _reconciler(github: Mock) -> MilestoneReconciler:
    return MilestoneReconciler(github=github, owner=LOGIN, repo=DEST_REPO)


def _numbering(start: int = 100):
    counter = iter(range(start, start + 1000))

    def _create(**kwargs: object) -> Milestone:
        return Milestone(title=str(kwargs["title"]), number=next(counter))

    return _create


def test_only_missing_milestone_is_created_once(github: Mock) -> None:
    week_c = {"description": "Week C", "due_on": "2024-03-01T00:00:00Z", "state": "open"}
    github.list_milestones.side_effect = by_repo(
        {
            DEST: [milestone("A", 1), milestone("B", 2)],
            SOURCE: [
                milestone("A", 10),
                milestone("B", 11),
                milestone("C", 12, **week_c),
                milestone("C", 13, **week_c),
            ],
        }
    )
    github.create_milestone.side_effect = _numbering()
    milestones = MilestoneMap()

    report = _reconciler(github).reconcile(milestones, SOURCE_OWNER, SOURCE_REPO)

    github.create_milestone.assert_called_once_with(
        owner=LOGIN,
        repo=DEST_REPO,
        title="C",
        description="Week C",
        state="open",
        due_on="2024-03-01T00:00:00Z",
    )
    assert milestones.as_dict() == {"A": 1, "B": 2, "C": 100}
    assert report.existing == ("A", "B")
    assert report.created == ("C",)
    assert report.failed == ()


def test_single_creation_failure_does_not_stop_reconciliation(github: Mock) -> None:
    github.list_milestones.side_effect = by_repo(
        {SOURCE: [milestone("One"), milestone("Two"), milestone("Three")]}
    )
    numbering = _numbering()

    def _create(**kwargs: object) -> Milestone:
        if kwargs["title"] == "Two":
            raise RemoteCallError("Create milestone 'Two' failed: HTTP 502", status=502)
        return numbering(**kwargs)

    github.create_milestone.side_effect = _create
    milestones = MilestoneMap()

    report = _reconciler(github).reconcile(milestones, SOURCE_OWNER, SOURCE_REPO)

    assert github.create_milestone.call_count == 3
    assert set(milestones) == {"One", "Three"}
    assert report.failed == ("Two",)


def test_destination_duplicate_titles_keep_first_number(github: Mock) -> None:
    github.list_milestones.side_effect = by_repo(
        {DEST: [milestone("Sprint 1", 3), milestone("Sprint 1", 9), milestone("", 4)]}
    )
    milestones = MilestoneMap()

    _reconciler(github).reconcile(milestones, SOURCE_OWNER, SOURCE_REPO)

    assert milestones.as_dict() == {"Sprint 1": 3}
    github.create_milestone.assert_not_called()


def test_same_title_with_different_content_is_created_once(github: Mock) -> None:
    github.list_milestones.side_effect = by_repo(
        {SOURCE: [milestone("Week 1", description="v1"), milestone("Week 1", description="v2")]}
    )
    github.create_milestone.side_effect = _numbering()
    milestones = MilestoneMap()

    _reconciler(github).reconcile(milestones, SOURCE_OWNER, SOURCE_REPO)

    github.create_milestone.assert_called_once()
    assert github.create_milestone.call_args.kwargs["description"] == "v1"


def test_unique_candidates_ignores_destination_number() -> None:
    known = MilestoneMap()
    known.record("Done", 1)

    candidates = unique_candidates(
        [milestone("Done", 5), milestone("New", 6), milestone("New", 7), milestone("", 8)],
        known,
    )

    assert candidates == [Milestone(title="New")]
