"""Exception taxonomy for provisioning and cloning."""

from __future__ import annotations


class ClonerError(Exception):
    """Base class for all errors raised by the cloner."""


class RemoteCallError(ClonerError):
    """A GitHub API call failed."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(RemoteCallError):
    """The requested resource does not exist (HTTP 404)."""


class ConflictError(RemoteCallError):
    """GitHub rejected the request as invalid or already existing (HTTP 422)."""


class ProvisionError(ClonerError):
    """A setup step (repository or project) could not be completed."""


class CloneError(ClonerError):
    """A fatal failure while cloning; `phase` names the step that failed."""

    def __init__(self, message: str, *, phase: str) -> None:
        super().__init__(message)
        self.phase = phase

    def __str__(self) -> str:
        return f"{self.phase}: {super().__str__()}"


class NoIssuesError(CloneError):
    """The source repository has no issues to clone."""

    def __init__(self, message: str) -> None:
        super().__init__(message, phase="list")
