"""Configuration for the REST server.

The server never holds a GitHub token of its own: every request is authenticated with
the caller's bearer token, so it can start without any credentials configured.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from github_issue_cloner.cloner.config import CloneDefaults


class ServerSettings(CloneDefaults):
    """Settings for the REST API.

    Notes:
        - Unlike :class:`github_issue_cloner.cloner.config.ClonerSettings`, this does NOT
          require a GitHub token at startup.
    """

    # Comma-separated origins of the planner front end. Override via CLIENT_URLS=...
    cors_origins: str = Field(
        default="http://localhost:3000",
        validation_alias="CLIENT_URLS",
        description="Comma-separated list of allowed CORS origins.",
    )

    model_config = SettingsConfigDict(
        env_prefix="", env_file=".env", extra="ignore", populate_by_name=True
    )

    def parsed_cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]
