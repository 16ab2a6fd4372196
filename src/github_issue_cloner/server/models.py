"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from github_issue_cloner.cloner.github.client import Issue
from github_issue_cloner.cloner.session import CloneResult


class ApiIssue(BaseModel):
    number: int
    title: str
    body: str | None = None
    labels: list[str] = Field(default_factory=list)
    milestone: str | None = None

    @classmethod
    def from_issue(cls, issue: Issue) -> ApiIssue:
        return cls(
            number=issue.number,
            title=issue.title,
            body=issue.body,
            labels=list(issue.labels),
            milestone=issue.milestone_title,
        )


class CloneResponse(BaseModel):
    total: int
    created: int
    failed: int
    skipped: int
    cancelled: int = 0

    @classmethod
    def from_result(cls, result: CloneResult) -> CloneResponse:
        return cls.model_validate(result.as_dict())


class SetupStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    signed_in: bool = Field(alias="signedIn")
    repo_created: bool = Field(alias="repoCreated")
    project_board_copied: bool = Field(alias="projectBoardCopied")
