from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr, ValidationError, conint, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import POLICY_FILENAME, POLL_INTERVAL_SECONDS
from .errors import ConfigurationError


class GateSettings(BaseSettings):
    """Run inputs loaded from the CI environment.

    Required inputs default to empty so that every missing value can be
    reported at once by ``PullRequestContext.from_settings``.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    github_token: SecretStr = Field(
        default="",
        validation_alias=AliasChoices("GITHUB_TOKEN", "github_token"),
        description="Token used for GitHub API calls",
    )
    pr_number: str = Field(
        default="",
        validation_alias=AliasChoices("PR_NUMBER", "pr_number"),
        description="Pull request number",
    )
    head_sha: str = Field(
        default="",
        validation_alias=AliasChoices("HEAD_SHA", "head_sha"),
        description="Full SHA of the pull request head commit",
    )
    github_repository: str = Field(
        default="",
        validation_alias=AliasChoices("GITHUB_REPOSITORY", "github_repository"),
        description="owner/repo",
    )

    # GitHub Actions plumbing (optional)
    github_output: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("GITHUB_OUTPUT", "github_output")
    )
    github_step_summary: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("GITHUB_STEP_SUMMARY", "github_step_summary")
    )
    github_workspace: str = Field(
        default=".", validation_alias=AliasChoices("GITHUB_WORKSPACE", "github_workspace")
    )

    # Gate tuning
    policy_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PR_POLICY_PATH", "policy_path"),
        description=f"Override for the policy contract path (default: <workspace>/{POLICY_FILENAME})",
    )
    poll_interval_seconds: conint(ge=5, le=30) = Field(
        default=POLL_INTERVAL_SECONDS,
        validation_alias=AliasChoices("PRGATE_POLL_INTERVAL_SECONDS", "poll_interval_seconds"),
        description="Seconds between review agent check-run polls",
    )

    @field_validator("pr_number", "head_sha", "github_repository", mode="before")
    @classmethod
    def _strip(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("github_output", "github_step_summary", "policy_path", mode="before")
    @classmethod
    def _empty_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def resolved_policy_path(self) -> Path:
        if self.policy_path:
            path = Path(self.policy_path)
            if not path.is_absolute():
                path = Path(self.github_workspace) / path
            return path
        return Path(self.github_workspace) / POLICY_FILENAME


def load_settings() -> GateSettings:
    """Read settings from the environment; shape errors become ConfigurationError."""
    try:
        return GateSettings()
    except ValidationError as exc:
        problems = "\n".join(
            f"  - {'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid gate settings:\n{problems}") from exc
