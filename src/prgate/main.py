from __future__ import annotations

import os
import sys
import threading
import time
import uuid
from typing import Callable, Optional

from .checks import compute_required_checks, needs_review_agent
from .classifier import classify_changed_files
from .config import GateSettings, load_settings
from .context import PullRequestContext
from .docs_drift import assert_docs_drift_rules
from .errors import (
    DocsDriftViolation,
    PolicyGateError,
    ReviewNotSuccessful,
    ReviewTimeout,
)
from .github import GitHubClient
from .logging import GateLogger
from .models import GateReport, GateStatus, ReviewStatus
from .policy import load_policy
from .publish import OutputWriter, write_step_summary
from .review_agent import ReviewAgentCoordinator

GATE_VERSION = "1.0.0"

ClientFactory = Callable[[str, str], GitHubClient]


def run_gate(
    settings: GateSettings,
    ctx: PullRequestContext,
    logger: GateLogger,
    outputs: OutputWriter,
    report: GateReport,
    *,
    client_factory: ClientFactory = GitHubClient,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
    cancel: Optional[threading.Event] = None,
) -> GateReport:
    """
    Run every gate stage in order, filling ``report`` as it goes.

    Each stage raises a PolicyGateError on failure; nothing after a failed
    stage runs. ``gate_passed`` is only written here on success; ``main``
    writes the failure value.
    """
    with logger.stage("load_policy"):
        policy = load_policy(settings.resolved_policy_path(), logger)

    gh = client_factory(settings.github_token.get_secret_value(), ctx.repo_full_name)

    with logger.stage("fetch_changed_files"):
        changed_files = gh.list_pull_request_files(ctx.pr_number)
    report.changed_files = list(changed_files)
    logger.info("changed_files", count=len(changed_files), files=changed_files)

    with logger.stage("classify"):
        classification = classify_changed_files(changed_files, policy.risk_tier_rules)
    tier = classification.tier
    report.risk_tier = tier
    if classification.matched_file:
        report.tier_reason = (
            f"`{classification.matched_file}` matched `{classification.matched_pattern}`"
        )
    else:
        report.tier_reason = "no tier pattern matched; default tier"
    logger.info(
        "risk_tier",
        tier=tier.value,
        matched_file=classification.matched_file,
        matched_pattern=classification.matched_pattern,
    )

    required_checks = compute_required_checks(tier, policy.merge_policy)
    report.required_checks = required_checks
    review_needed = needs_review_agent(tier)
    logger.info("required_checks", tier=tier.value, checks=required_checks)

    outputs.set("risk_tier", tier.value)
    outputs.set("required_checks", ",".join(required_checks))
    outputs.set_bool("needs_review_agent", review_needed)

    with logger.stage("docs_drift"):
        try:
            assert_docs_drift_rules(changed_files, policy.docs_drift_rules, logger)
        except DocsDriftViolation:
            report.docs_drift_ok = False
            raise
    report.docs_drift_ok = True

    if not review_needed:
        report.review_status = ReviewStatus.NOT_REQUIRED
        logger.info("review_agent_skipped", tier=tier.value)
    else:
        coordinator = ReviewAgentCoordinator(
            gh,
            ctx,
            policy.review_agent,
            logger,
            poll_interval_seconds=settings.poll_interval_seconds,
            clock=clock,
            sleep=sleep,
            cancel=cancel,
        )
        logger.info("review_agent_required", tier=tier.value, provider=policy.review_agent.provider)
        with logger.stage("review_agent"):
            try:
                completed = coordinator.run()
            except ReviewTimeout:
                report.review_status = ReviewStatus.TIMED_OUT
                raise
            except ReviewNotSuccessful:
                report.review_status = ReviewStatus.FAILED
                raise
        report.review_status = ReviewStatus.PASSED
        report.review_url = completed.link

    report.status = GateStatus.PASSED
    outputs.set_bool("gate_passed", True)
    logger.info(
        "GATE PASSED",
        risk_tier=tier.value,
        required_checks=required_checks,
        docs_drift="OK",
        review_agent="OK" if review_needed else "not required",
    )
    return report


def main() -> int:
    """Main entry point."""
    run_id = str(uuid.uuid4())
    logger = GateLogger(run_id)
    outputs = OutputWriter(os.environ.get("GITHUB_OUTPUT"), logger)
    report = GateReport()
    settings: Optional[GateSettings] = None
    ctx: Optional[PullRequestContext] = None

    logger.info("PR Policy Gate starting", version=GATE_VERSION)
    try:
        settings = load_settings()
        outputs = OutputWriter(settings.github_output, logger)
        ctx = PullRequestContext.from_settings(settings)
        logger = logger.bind(repo=ctx.repo_full_name, pr_number=ctx.pr_number, head_sha=ctx.head_sha)
        outputs = OutputWriter(settings.github_output, logger)
        logger.info("context")
        run_gate(settings, ctx, logger, outputs, report, client_factory=GitHubClient)
        return 0
    except PolicyGateError as exc:
        report.status = GateStatus.FAILED
        report.failure_label = exc.label
        report.failure_reason = str(exc)
        logger.error(f"{exc.label}: {exc}", error_type=type(exc).__name__)
        outputs.set_bool("gate_passed", False)
        return int(exc.exit_code)
    except Exception as exc:
        report.status = GateStatus.FAILED
        report.failure_label = "Unhandled error"
        report.failure_reason = f"{type(exc).__name__}: {exc}"
        logger.exception(f"Unhandled fatal error: {exc}", exc)
        outputs.set_bool("gate_passed", False)
        return 1
    finally:
        if settings is not None and ctx is not None:
            try:
                write_step_summary(
                    report,
                    settings.github_step_summary,
                    repo_full_name=ctx.repo_full_name,
                    pr_number=ctx.pr_number,
                    head_sha=ctx.head_sha,
                )
            except OSError as exc:
                logger.warning("Step summary write failed", error=str(exc))


if __name__ == "__main__":
    sys.exit(main())
