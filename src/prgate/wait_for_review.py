"""Standalone wait-for-review step.

Polls the review agent's check run for the head SHA and reports
``review_clean=true|false`` without running the rest of the gate.
"""

from __future__ import annotations

import os
import sys
import uuid

from .config import load_settings
from .context import PullRequestContext
from .errors import PolicyGateError, ReviewNotSuccessful
from .github import GitHubClient
from .logging import GateLogger
from .policy import load_policy
from .publish import OutputWriter
from .review_agent import ReviewAgentCoordinator


def main() -> int:
    logger = GateLogger(str(uuid.uuid4()), prefix="wait-for-review")
    outputs = OutputWriter(os.environ.get("GITHUB_OUTPUT"), logger)
    try:
        settings = load_settings()
        outputs = OutputWriter(settings.github_output, logger)
        ctx = PullRequestContext.from_settings(settings)
        policy = load_policy(settings.resolved_policy_path(), logger)
        agent = policy.review_agent
        logger.info(
            "wait_for_review",
            repo=ctx.repo_full_name,
            pr_number=ctx.pr_number,
            head_sha=ctx.head_sha,
            provider=agent.provider,
            check_run=agent.check_run_name,
            rerun_marker=agent.rerun_marker,
        )

        gh = GitHubClient(settings.github_token.get_secret_value(), ctx.repo_full_name)
        coordinator = ReviewAgentCoordinator(
            gh,
            ctx,
            agent,
            logger,
            poll_interval_seconds=settings.poll_interval_seconds,
        )
        run = coordinator.wait_for_completion()
        coordinator.assert_success(run)
    except ReviewNotSuccessful as exc:
        logger.error(f"{exc.label}: {exc}", conclusion=exc.conclusion)
        outputs.set_bool("review_clean", False)
        return int(exc.exit_code)
    except PolicyGateError as exc:
        logger.error(f"{exc.label}: {exc}", error_type=type(exc).__name__)
        outputs.set_bool("review_clean", False)
        return int(exc.exit_code)
    except Exception as exc:
        logger.exception(f"Unhandled fatal error: {exc}", exc)
        outputs.set_bool("review_clean", False)
        return 1

    logger.info("REVIEW CLEAN", check_run=agent.check_run_name, conclusion=run.conclusion, details=run.link)
    outputs.set_bool("review_clean", True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
