"""FastAPI app factory.

Endpoints are thin wrappers over the clone service. Each request gets its own
`CloneSession`, built from the caller's bearer token, so no state is shared between users.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Annotated

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from github_issue_cloner import __version__
from github_issue_cloner.cloner.clone_service import CloneService
from github_issue_cloner.cloner.errors import (
    CloneError,
    NoIssuesError,
    NotFoundError,
    ProvisionError,
    RemoteCallError,
)
from github_issue_cloner.cloner.github.client import GitHubClient
from github_issue_cloner.cloner.session import CloneResult, CloneSession
from github_issue_cloner.server.config import ServerSettings
from github_issue_cloner.server.models import ApiIssue, CloneResponse, SetupStatus

logger = logging.getLogger(__name__)


def _bearer_token(authorization: str | None) -> str:
    if not authorization or not authorization.strip():
        raise HTTPException(status_code=401, detail="Missing bearer token")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() not in {"bearer", "token"} or not token.strip():
        raise HTTPException(status_code=401, detail="Malformed Authorization header")
    return token.strip()


def _build_client(token: str, settings: ServerSettings) -> GitHubClient:
    return GitHubClient(token=token, base_url=settings.github_base_url)


def _clone_error_status(error: CloneError) -> int:
    if isinstance(error, NoIssuesError):
        return 400
    if isinstance(error.__cause__, NotFoundError):
        return 404
    return 500


def clone_service(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> Iterator[CloneService]:
    """Build a per-request clone service for the caller's token."""

    settings: ServerSettings = request.app.state.settings
    token = _bearer_token(authorization)
    github = _build_client(token, settings)
    try:
        try:
            session = CloneSession.for_client(github)
        except RemoteCallError as e:
            logger.warning("Could not resolve authenticated user", extra={"error": str(e)})
            raise HTTPException(
                status_code=401, detail=f"Could not get authenticated user: {e}"
            ) from e
        yield CloneService(
            session=session,
            destination_repo=settings.default_repo,
            default_owner=settings.default_owner,
            project_query=settings.project_query,
            max_workers=settings.max_workers,
        )
    finally:
        github.close()


Service = Annotated[CloneService, Depends(clone_service)]


def create_app() -> FastAPI:
    settings = ServerSettings()

    app = FastAPI(
        title="GitHub Issue Cloner",
        version=__version__,
        description="Clone coursework issues and milestones into each user's planner repo.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def run_clone(service: CloneService, repo: str, issue: int | None, allow: bool) -> CloneResult:
        try:
            if issue is not None:
                return service.clone_one(repo, issue)
            return service.clone_all(repo, allow_duplicates=allow)
        except ValueError as e:
            raise HTTPException(status_code=400, detail={"error": str(e)}) from e
        except CloneError as e:
            logger.error(
                "Clone failed", extra={"repo": repo, "phase": e.phase, "error": str(e)}
            )
            raise HTTPException(
                status_code=_clone_error_status(e), detail={"error": str(e)}
            ) from e

    @app.get("/api/v1/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.post(
        "/api/v1/github/initial-setup", response_model=SetupStatus, response_model_by_alias=True
    )
    def initial_setup(service: Service) -> SetupStatus:
        try:
            service.initial_setup()
        except (ProvisionError, RemoteCallError) as e:
            logger.error("Initial setup failed", extra={"error": str(e)})
            status = SetupStatus(
                signed_in=True,
                repo_created=service.repository_id is not None,
                project_board_copied=service.project_id is not None,
            )
            raise HTTPException(
                status_code=500,
                detail={"error": str(e), "setupStatus": status.model_dump(by_alias=True)},
            ) from e
        return SetupStatus(signed_in=True, repo_created=True, project_board_copied=True)

    @app.get("/api/v1/github/issues", response_model=list[ApiIssue])
    def list_issues(service: Service, repo: Annotated[str, Query(min_length=1)]) -> list[ApiIssue]:
        try:
            issues = service.list_source_issues(repo)
        except ValueError as e:
            raise HTTPException(status_code=400, detail={"error": str(e)}) from e
        except CloneError as e:
            raise HTTPException(
                status_code=_clone_error_status(e), detail={"error": str(e)}
            ) from e
        return [ApiIssue.from_issue(issue) for issue in issues]

    @app.post("/api/v1/github/clone/{repo}", response_model=CloneResponse)
    def clone_all(
        service: Service,
        repo: str,
        allow_duplicates: Annotated[bool, Query(alias="allowDuplicates")] = False,
    ) -> CloneResponse:
        logger.debug("Cloning all issues", extra={"repo": repo})
        result = run_clone(service, repo, None, allow_duplicates)
        return CloneResponse.from_result(result)

    @app.post("/api/v1/github/clone/{repo}/{issue}", response_model=CloneResponse)
    def clone_one(service: Service, repo: str, issue: int) -> CloneResponse:
        result = run_clone(service, repo, issue, False)
        return CloneResponse.from_result(result)

    return app
