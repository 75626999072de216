"""Resolve pull request review threads that only bots have commented on."""

from __future__ import annotations

import os
import sys
import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from .config import load_settings
from .context import PullRequestContext
from .errors import FetchError, PolicyGateError
from .logging import GateLogger

GITHUB_GRAPHQL_URL = os.environ.get("GITHUB_GRAPHQL_URL", "https://api.github.com/graphql")
GRAPHQL_TIMEOUT_SECONDS = 30.0

KNOWN_BOTS = frozenset({"coderabbitai", "greptile", "github-actions", "dependabot", "renovate"})

LIST_REVIEW_THREADS_QUERY = """
query($owner: String!, $repo: String!, $pr: Int!) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pr) {
      reviewThreads(first: 100) {
        nodes {
          id
          isResolved
          comments(first: 50) {
            nodes { author { login } }
          }
        }
      }
    }
  }
}
"""

RESOLVE_THREAD_MUTATION = """
mutation($threadId: ID!) {
  resolveReviewThread(input: { threadId: $threadId }) {
    thread { isResolved }
  }
}
"""


def is_bot(login: str) -> bool:
    return login.endswith("[bot]") or login.lower() in KNOWN_BOTS


@dataclass(frozen=True)
class ReviewThread:
    id: str
    is_resolved: bool
    # None for deleted accounts.
    authors: tuple[Optional[str], ...]

    @classmethod
    def from_api(cls, node: Dict[str, Any]) -> "ReviewThread":
        comments = ((node.get("comments") or {}).get("nodes")) or []
        authors = tuple((c.get("author") or {}).get("login") for c in comments)
        return cls(id=str(node.get("id")), is_resolved=bool(node.get("isResolved")), authors=authors)

    @property
    def human_authors(self) -> List[str]:
        return [login for login in self.authors if login is not None and not is_bot(login)]

    @property
    def bot_only(self) -> bool:
        """Empty threads and ghost authors count as bot-only."""
        return not self.human_authors


class GraphQLClient:
    def __init__(self, token: str, url: str = GITHUB_GRAPHQL_URL):
        self.url = url
        self.headers = {
            "Authorization": f"Bearer {token}",
            "User-Agent": "pr-policy-gate",
        }

    def execute(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        try:
            with httpx.Client(timeout=GRAPHQL_TIMEOUT_SECONDS) as client:
                resp = client.post(self.url, json={"query": query, "variables": variables}, headers=self.headers)
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise FetchError(f"GraphQL request failed: {exc}") from exc
        if payload.get("errors"):
            messages = "; ".join(str(e.get("message")) for e in payload["errors"])
            raise FetchError(f"GraphQL errors: {messages}")
        return payload.get("data") or {}

    def list_review_threads(self, ctx: PullRequestContext) -> List[ReviewThread]:
        data = self.execute(
            LIST_REVIEW_THREADS_QUERY,
            {"owner": ctx.repo_owner, "repo": ctx.repo_name, "pr": ctx.pr_number},
        )
        pull = ((data.get("repository") or {}).get("pullRequest")) or {}
        nodes = ((pull.get("reviewThreads") or {}).get("nodes")) or []
        return [ReviewThread.from_api(node) for node in nodes]

    def resolve_review_thread(self, thread_id: str) -> bool:
        data = self.execute(RESOLVE_THREAD_MUTATION, {"threadId": thread_id})
        thread = ((data.get("resolveReviewThread") or {}).get("thread")) or {}
        return bool(thread.get("isResolved"))


def resolve_bot_threads(client: GraphQLClient, ctx: PullRequestContext, logger: GateLogger) -> Dict[str, int]:
    """Resolve bot-only threads; per-thread failures are logged and skipped."""
    threads = client.list_review_threads(ctx)
    logger.info("review_threads_fetched", count=len(threads), pr_number=ctx.pr_number)

    counts = {"resolved": 0, "skipped": 0, "already_resolved": 0, "failed": 0}
    for thread in threads:
        if thread.is_resolved:
            counts["already_resolved"] += 1
            continue
        if not thread.bot_only:
            logger.info("thread_skipped", thread_id=thread.id, human_authors=thread.human_authors)
            counts["skipped"] += 1
            continue
        try:
            now_resolved = client.resolve_review_thread(thread.id)
        except FetchError as exc:
            logger.warning(f"Failed to resolve thread {thread.id}", error=str(exc))
            counts["failed"] += 1
            continue
        logger.info("thread_resolved", thread_id=thread.id, is_resolved=now_resolved)
        counts["resolved"] += 1
    return counts


def main() -> int:
    logger = GateLogger(str(uuid.uuid4()), prefix="resolve-threads")
    try:
        settings = load_settings()
        ctx = PullRequestContext.from_settings(settings)
        client = GraphQLClient(settings.github_token.get_secret_value())
        counts = resolve_bot_threads(client, ctx, logger)
    except PolicyGateError as exc:
        logger.error(f"{exc.label}: {exc}", error_type=type(exc).__name__)
        return int(exc.exit_code)
    except Exception as exc:
        logger.exception(f"Unhandled fatal error: {exc}", exc)
        return 1

    logger.info("Done", **counts)
    return 0


if __name__ == "__main__":
    sys.exit(main())
