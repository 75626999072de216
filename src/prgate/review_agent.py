"""Review-agent coordination: request a review, wait for it, check the verdict."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from .constants import CHECK_RUN_COMPLETED, CONCLUSION_SUCCESS, POLL_INTERVAL_SECONDS
from .context import PullRequestContext
from .errors import FetchError, GateCancelled, ReviewNotSuccessful, ReviewTimeout
from .github import GitHubClient
from .logging import GateLogger
from .polling import poll_until
from .policy import ReviewAgentConfig
from .utils import coerce_int, parse_iso8601


@dataclass(frozen=True)
class CheckRun:
    """Snapshot of a GitHub check run."""

    id: int
    name: str
    status: str
    conclusion: Optional[str]
    started_at: Optional[datetime]
    details_url: Optional[str]
    html_url: Optional[str]

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "CheckRun":
        return cls(
            id=coerce_int(payload.get("id")) or 0,
            name=str(payload.get("name") or ""),
            status=str(payload.get("status") or "unknown"),
            conclusion=payload.get("conclusion"),
            started_at=parse_iso8601(payload.get("started_at")),
            details_url=payload.get("details_url"),
            html_url=payload.get("html_url"),
        )

    @property
    def is_completed(self) -> bool:
        return self.status == CHECK_RUN_COMPLETED

    @property
    def link(self) -> str:
        return self.details_url or self.html_url or "n/a"


def select_latest_run(runs: Sequence[CheckRun]) -> Optional[CheckRun]:
    """
    Pick the authoritative run among same-named runs for one revision.

    Most recently started wins. Runs without ``started_at`` rank below any
    timestamped run; remaining ties go to the highest run id.
    """
    if not runs:
        return None
    return max(
        runs,
        key=lambda run: (
            run.started_at is not None,
            run.started_at.timestamp() if run.started_at else 0.0,
            run.id,
        ),
    )


def rerun_comment_body(marker: str, command: str, head_sha: str) -> str:
    return "\n".join([marker, command, f"sha:{head_sha}"])


def has_rerun_comment(comments: Sequence[Dict[str, Any]], marker: str, head_sha: str) -> bool:
    sha_tag = f"sha:{head_sha}"
    for comment in comments:
        body = comment.get("body") or ""
        if marker in body and sha_tag in body:
            return True
    return False


class ReviewAgentCoordinator:
    """Drives the review agent for one pull request revision.

    Request posts a rerun comment at most once per head SHA, Wait polls the
    agent's check run until it completes, Assert requires a ``success``
    conclusion.
    """

    def __init__(
        self,
        gh: GitHubClient,
        ctx: PullRequestContext,
        agent: ReviewAgentConfig,
        logger: GateLogger,
        *,
        poll_interval_seconds: float = POLL_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        cancel: Optional[threading.Event] = None,
    ):
        self.gh = gh
        self.ctx = ctx
        self.agent = agent
        self.logger = logger
        self.poll_interval_seconds = poll_interval_seconds
        self.clock = clock
        self.sleep = sleep
        self.cancel = cancel

    def request_review(self) -> bool:
        """
        Post the rerun comment unless this revision already has one.

        Returns True when a comment was posted. API failures are logged
        and swallowed: the agent may already be running from a push webhook.
        """
        try:
            comments = self.gh.list_issue_comments(self.ctx.pr_number)
            if has_rerun_comment(comments, self.agent.rerun_marker, self.ctx.head_sha):
                self.logger.info(
                    "rerun_comment_exists",
                    head_sha=self.ctx.head_sha,
                    pr_number=self.ctx.pr_number,
                )
                return False
            body = rerun_comment_body(self.agent.rerun_marker, self.agent.rerun_command, self.ctx.head_sha)
            url = self.gh.create_issue_comment(self.ctx.pr_number, body)
        except FetchError as exc:
            self.logger.warning("Could not post rerun comment", error=str(exc))
            return False

        self.logger.info("rerun_comment_posted", head_sha=self.ctx.head_sha, url=url or "")
        return True

    def fetch_latest_run(self) -> Optional[CheckRun]:
        payloads = self.gh.list_check_runs(self.ctx.head_sha, self.agent.check_run_name)
        name = self.agent.check_run_name
        runs: List[CheckRun] = [
            CheckRun.from_api(p) for p in payloads if (p.get("name") or name) == name
        ]
        return select_latest_run(runs)

    def _log_attempt(self, attempt: int, run: Optional[CheckRun], remaining: float) -> None:
        if run is None:
            self.logger.info(
                "check_run_not_found",
                attempt=attempt,
                check_run=self.agent.check_run_name,
                remaining_seconds=int(remaining),
            )
            return
        self.logger.info(
            "check_run_polled",
            attempt=attempt,
            check_run_id=run.id,
            status=run.status,
            conclusion=run.conclusion or "pending",
            remaining_seconds=int(remaining),
        )

    def wait_for_completion(self) -> CheckRun:
        """Poll until the check run completes; raises ReviewTimeout on deadline."""
        timeout_minutes = self.agent.timeout_minutes
        self.logger.info(
            "review_wait_start",
            check_run=self.agent.check_run_name,
            head_sha=self.ctx.head_sha,
            timeout_minutes=timeout_minutes,
            poll_interval_seconds=self.poll_interval_seconds,
        )
        outcome = poll_until(
            self.fetch_latest_run,
            lambda run: run is not None and run.is_completed,
            timeout_seconds=timeout_minutes * 60,
            interval_seconds=self.poll_interval_seconds,
            clock=self.clock,
            sleep=self.sleep,
            cancel=self.cancel,
            on_attempt=self._log_attempt,
        )
        if outcome.cancelled:
            raise GateCancelled(
                f'Cancelled while waiting for check run "{self.agent.check_run_name}" '
                f"on SHA {self.ctx.head_sha}."
            )
        if outcome.timed_out or outcome.value is None:
            last_status = outcome.value.status if outcome.value else "not found"
            raise ReviewTimeout(
                f"Code review agent timed out after {timeout_minutes} minutes.\n"
                f'  Check run "{self.agent.check_run_name}" never completed for SHA {self.ctx.head_sha}.\n'
                f"  Polls: {outcome.attempts}, last status: {last_status}"
            )

        run = outcome.value
        self.logger.info("review_completed", check_run_id=run.id, conclusion=run.conclusion or "unknown")
        return run

    def assert_success(self, run: CheckRun) -> None:
        """Only ``success`` passes; every other conclusion means open findings."""
        if run.conclusion == CONCLUSION_SUCCESS:
            self.logger.info("review_passed", check_run_id=run.id)
            return
        raise ReviewNotSuccessful(
            f"Code review agent reported actionable findings for SHA {self.ctx.head_sha}.\n"
            f'  Check run: "{self.agent.check_run_name}"\n'
            f"  Conclusion: {run.conclusion or 'unknown'}\n"
            f"  Details URL: {run.link}\n"
            f'Resolve all findings before merging, then re-trigger the review ("{self.agent.rerun_command}").',
            conclusion=run.conclusion,
        )

    def run(self) -> CheckRun:
        self.request_review()
        completed = self.wait_for_completion()
        self.assert_success(completed)
        return completed
