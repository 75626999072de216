from __future__ import annotations

from typing import List, Sequence

from .constants import ExitCode


class PolicyGateError(Exception):
    """Base exception for all policy gate errors."""

    exit_code: ExitCode = ExitCode.FAILED
    label: str = "Policy gate error"


class ConfigurationError(PolicyGateError):
    """Run inputs or the policy file are missing."""

    label = "Configuration error"


class ParseError(PolicyGateError):
    """Policy contract is not valid JSON or has the wrong shape."""

    label = "Policy contract error"

    def __init__(self, message: str, problems: Sequence[str] = ()) -> None:
        self.problems: List[str] = list(problems)
        if self.problems:
            message = message + "\n" + "\n".join(f"  - {p}" for p in self.problems)
        super().__init__(message)


class FetchError(PolicyGateError):
    """A GitHub API call failed."""

    label = "GitHub API error"


class DocsDriftViolation(PolicyGateError):
    """A docs drift rule fired without its companion update."""

    label = "Docs drift violation"

    def __init__(self, message: str, violations: Sequence[object] = ()) -> None:
        super().__init__(message)
        self.violations = list(violations)


class ReviewTimeout(PolicyGateError):
    """Review agent check run did not complete before the deadline."""

    label = "Review agent timeout"


class ReviewNotSuccessful(PolicyGateError):
    """Review agent completed with a conclusion other than success."""

    label = "Review agent findings"

    def __init__(self, message: str, conclusion: str | None = None) -> None:
        super().__init__(message)
        self.conclusion = conclusion


class GateCancelled(PolicyGateError):
    """The run was cancelled while waiting on the review agent."""

    label = "Cancelled"
