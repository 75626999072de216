from __future__ import annotations

import copy
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from prgate.errors import FetchError

HEAD_SHA = "a" * 40

BASE_POLICY: Dict[str, Any] = {
    "version": "1.0",
    "description": "test policy",
    "riskTierRules": {
        "critical": ["infra/**", ".github/workflows/**"],
        "high": ["src/api/**", "src/lib/auth/**"],
        "medium": ["src/**", "tests/**"],
        "low": ["**/*.md"],
    },
    "mergePolicy": {
        "critical": {
            "requiredChecks": ["lint", "tests", "ai-review"],
            "requiredHumanReviewers": 2,
            "evidenceRequired": ["tests"],
            "autoMerge": False,
        },
        "high": {
            "requiredChecks": ["lint", "tests", "ai-review"],
            "requiredHumanReviewers": 1,
            "evidenceRequired": [],
            "autoMerge": False,
        },
        "medium": {
            "requiredChecks": ["lint", "tests"],
            "requiredHumanReviewers": 1,
            "evidenceRequired": [],
            "autoMerge": False,
        },
        "low": {
            "requiredChecks": ["lint"],
            "requiredHumanReviewers": 0,
            "evidenceRequired": [],
            "autoMerge": True,
        },
    },
    "docsDriftRules": [
        {
            "trigger": ["src/api/**"],
            "requireUpdated": ["docs/**"],
            "message": "API changes must update docs",
        }
    ],
    "reviewAgent": {
        "provider": "coderabbit",
        "checkRunName": "ai-review",
        "timeoutMinutes": 1,
        "rerunMarker": "<!-- pr-agent-loop-rerun -->",
        "rerunCommand": "@coderabbitai review",
    },
    "shaPolicy": {
        "requireCurrentHead": True,
        "staleAfterPushEvents": ["synchronize"],
        "maxRerunsPerSha": 1,
    },
}


class DummyGitHub:
    """In-memory stand-in for GitHubClient.

    ``check_run_polls`` is a list of check-run lists, one per poll; the
    last entry repeats once exhausted.
    """

    def __init__(
        self,
        files: Optional[List[str]] = None,
        check_run_polls: Optional[List[List[Dict[str, Any]]]] = None,
        comments: Optional[List[Dict[str, Any]]] = None,
        fail_files: bool = False,
        fail_comments: bool = False,
    ) -> None:
        self.files = list(files or [])
        self.check_run_polls = list(check_run_polls or [])
        self.comments = list(comments or [])
        self.fail_files = fail_files
        self.fail_comments = fail_comments
        self.posted: List[str] = []
        self.check_run_calls = 0

    def list_pull_request_files(self, pr_number: int) -> List[str]:
        if self.fail_files:
            raise FetchError("GET files failed: 502 Bad Gateway")
        return list(self.files)

    def list_check_runs(self, head_sha: str, check_name: Optional[str] = None) -> List[Dict[str, Any]]:
        self.check_run_calls += 1
        if not self.check_run_polls:
            return []
        index = min(self.check_run_calls - 1, len(self.check_run_polls) - 1)
        return self.check_run_polls[index]

    def list_issue_comments(self, pr_number: int) -> List[Dict[str, Any]]:
        if self.fail_comments:
            raise FetchError("GET comments failed: 500 Server Error")
        return list(self.comments)

    def create_issue_comment(self, pr_number: int, body: str) -> Optional[str]:
        self.posted.append(body)
        self.comments.append({"id": len(self.comments) + 1, "body": body})
        return f"https://github.com/octo/repo/pull/{pr_number}#issuecomment-{len(self.comments)}"


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def check_run(
    status: str,
    conclusion: Optional[str] = None,
    *,
    run_id: int = 1,
    started_at: Optional[str] = "2026-02-08T05:30:00Z",
    name: str = "ai-review",
) -> Dict[str, Any]:
    return {
        "id": run_id,
        "name": name,
        "status": status,
        "conclusion": conclusion,
        "started_at": started_at,
        "details_url": f"https://example.com/checks/{run_id}",
        "html_url": f"https://github.com/octo/repo/runs/{run_id}",
    }


@pytest.fixture
def policy_dict() -> Dict[str, Any]:
    return copy.deepcopy(BASE_POLICY)


@pytest.fixture
def policy_file(tmp_path: Path, policy_dict: Dict[str, Any]) -> Path:
    path = tmp_path / ".pr-policy.json"
    path.write_text(json.dumps(policy_dict), encoding="utf-8")
    return path


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
