from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List

from .config import GateSettings
from .errors import ConfigurationError

_SHA_RE = re.compile(r"^(?:[0-9a-fA-F]{40}|[0-9a-fA-F]{64})$")


def parse_repository(full_name: str) -> tuple[str, str]:
    """Split ``owner/repo``; raises ValueError on anything else."""
    parts = (full_name or "").split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ValueError(f'Invalid GITHUB_REPOSITORY format: "{full_name}". Expected "owner/repo".')
    return parts[0], parts[1]


@dataclass(frozen=True)
class PullRequestContext:
    """Immutable pull request context for one gate run."""

    repo_owner: str
    repo_name: str
    pr_number: int
    head_sha: str

    @property
    def repo_full_name(self) -> str:
        return f"{self.repo_owner}/{self.repo_name}"

    @property
    def sha_tag(self) -> str:
        return f"sha:{self.head_sha}"

    @classmethod
    def from_settings(cls, settings: GateSettings) -> "PullRequestContext":
        """Validate run inputs, reporting every problem in one error."""
        missing: List[str] = []
        if not settings.github_token.get_secret_value():
            missing.append("GITHUB_TOKEN")
        if not settings.pr_number:
            missing.append("PR_NUMBER")
        if not settings.head_sha:
            missing.append("HEAD_SHA")
        if not settings.github_repository:
            missing.append("GITHUB_REPOSITORY")

        problems: List[str] = []
        if missing:
            problems.append(f"Missing required environment variables: {', '.join(missing)}")

        pr_number = 0
        if settings.pr_number:
            try:
                pr_number = int(settings.pr_number)
            except ValueError:
                pr_number = 0
            if pr_number <= 0:
                problems.append(f'PR_NUMBER must be a positive integer. Got: "{settings.pr_number}"')

        if settings.head_sha and not _SHA_RE.match(settings.head_sha):
            problems.append(
                f'HEAD_SHA must be a full-length commit SHA. Got: "{settings.head_sha}"'
            )

        owner = repo = ""
        if settings.github_repository:
            try:
                owner, repo = parse_repository(settings.github_repository)
            except ValueError as exc:
                problems.append(str(exc))

        if problems:
            raise ConfigurationError("\n".join(problems))

        return cls(
            repo_owner=owner,
            repo_name=repo,
            pr_number=pr_number,
            head_sha=settings.head_sha,
        )
