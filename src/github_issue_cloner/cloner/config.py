"""Configuration for the issue cloner.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

The CLI authenticates with `CLONER_GITHUB_TOKEN`. The REST server does not read a token
from configuration; it uses the bearer token of each incoming request instead.
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CloneDefaults(BaseSettings):
    """Settings shared by the CLI and the REST server.

    Environment variables:
    - GITHUB_BASE_URL       (optional)
    - LOG_LEVEL             (optional)
    - DEFAULT_OWNER         (optional)
    - DEFAULT_REPO          (optional)
    - CLONER_PROJECT_QUERY  (optional)
    - CLONER_MAX_WORKERS    (optional)
    """

    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    default_owner: str = Field(
        default="CodeYourFuture",
        validation_alias="DEFAULT_OWNER",
        description="Owner of source repositories given by name only",
    )
    default_repo: str = Field(
        default="My-Coursework-Planner",
        validation_alias="DEFAULT_REPO",
        description="Name of the per-user destination repository",
    )

    project_query: str = Field(
        default="coursework planner",
        validation_alias="CLONER_PROJECT_QUERY",
        description="Search query used to discover the user's existing project board",
    )

    max_workers: int = Field(
        default=1,
        validation_alias="CLONER_MAX_WORKERS",
        description="Concurrent issue creations per clone request (1 = sequential)",
        ge=1,
        le=16,
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )


class ClonerSettings(CloneDefaults):
    """Settings for the command-line cloner.

    Environment variables (in addition to :class:`CloneDefaults`):
    - CLONER_GITHUB_TOKEN

    Notes:
        Pydantic-settings supports overriding the env file in tests via:
        `ClonerSettings(_env_file=path_to_env)`.
    """

    github_token: str = Field(
        default="",
        validation_alias="CLONER_GITHUB_TOKEN",
        description="GitHub token of the user whose repository receives the clones",
    )

    @model_validator(mode="after")
    def _require_github_auth(self) -> ClonerSettings:
        if not self.github_token.strip():
            raise ValueError("CLONER_GITHUB_TOKEN is required")
        return self
