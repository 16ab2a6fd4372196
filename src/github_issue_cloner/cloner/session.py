"""Per-request session state shared by the provisioning and cloning services.

A session belongs to exactly one authenticated user's request. Nothing here is shared
across users, so the only locking needed is inside `CloneResult` for concurrent issue
creation within a single request.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal

from github_issue_cloner.cloner.github.client import GitHubClient

OutcomeStatus = Literal["created", "skipped", "failed", "cancelled"]


@dataclass(slots=True)
class ProvisioningState:
    """Identifiers resolved during setup."""

    login: str
    user_node_id: str
    repository_id: str | None = None
    project_id: str | None = None


class MilestoneMap:
    """Milestone title to destination milestone number.

    Entries are append-only: once a title is mapped it keeps its first number.
    """

    def __init__(self) -> None:
        self._numbers: dict[str, int] = {}

    def record(self, title: str, number: int) -> bool:
        """Map `title` to `number` unless it is already mapped. Returns True if added."""

        if not title or title in self._numbers:
            return False
        self._numbers[title] = number
        return True

    def get(self, title: str | None) -> int | None:
        if not title:
            return None
        return self._numbers.get(title)

    def __contains__(self, title: object) -> bool:
        return title in self._numbers

    def __len__(self) -> int:
        return len(self._numbers)

    def __iter__(self) -> Iterator[str]:
        return iter(self._numbers)

    def as_dict(self) -> dict[str, int]:
        return dict(self._numbers)


@dataclass(frozen=True, slots=True)
class IssueOutcome:
    title: str
    status: OutcomeStatus
    issue_number: int | None = None
    error: str | None = None


@dataclass
class CloneResult:
    """Accounting for one clone request.

    `total` is fixed up front; every considered issue lands in exactly one bucket, so
    `total == created + failed + skipped + cancelled` always holds.
    """

    total: int
    failed: int = 0
    skipped: int = 0
    cancelled: int = 0
    outcomes: list[IssueOutcome] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def created(self) -> int:
        return self.total - self.failed - self.skipped - self.cancelled

    def record_created(self, title: str, issue_number: int) -> None:
        with self._lock:
            self.outcomes.append(IssueOutcome(title, "created", issue_number=issue_number))

    def record_skipped(self, title: str) -> None:
        with self._lock:
            self.skipped += 1
            self.outcomes.append(IssueOutcome(title, "skipped"))

    def record_failure(self, title: str, error: str) -> None:
        with self._lock:
            self.failed += 1
            self.outcomes.append(IssueOutcome(title, "failed", error=error))

    def record_cancelled(self, title: str) -> None:
        with self._lock:
            self.cancelled += 1
            self.outcomes.append(IssueOutcome(title, "cancelled"))

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "created": self.created,
            "failed": self.failed,
            "skipped": self.skipped,
            "cancelled": self.cancelled,
        }


@dataclass(slots=True)
class CloneSession:
    """An authenticated client plus the state owned by one clone request."""

    client: GitHubClient
    state: ProvisioningState
    milestones: MilestoneMap = field(default_factory=MilestoneMap)

    @property
    def login(self) -> str:
        return self.state.login

    @classmethod
    def for_client(cls, client: GitHubClient) -> CloneSession:
        """Resolve the token owner's identity and start a fresh session."""

        user = client.get_authenticated_user()
        return cls(
            client=client,
            state=ProvisioningState(login=user.login, user_node_id=user.node_id),
        )
