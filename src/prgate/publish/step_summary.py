from __future__ import annotations

from typing import List, Optional

from ..utils import truncate
from ..models import GateReport, ReviewStatus


def _review_label(status: ReviewStatus) -> str:
    return {
        ReviewStatus.NOT_REQUIRED: "not required",
        ReviewStatus.PASSED: "✅ success",
        ReviewStatus.FAILED: "❌ findings present",
        ReviewStatus.TIMED_OUT: "⏱️ timed out",
        ReviewStatus.PENDING: "not reached",
    }[status]


def render_step_summary(report: GateReport, repo_full_name: str, pr_number: int, head_sha: str) -> str:
    status_icon = "✅" if report.passed else "❌"
    tier = report.risk_tier.value if report.risk_tier else "n/a"
    if report.docs_drift_ok is None:
        docs = "not reached"
    else:
        docs = "OK" if report.docs_drift_ok else "violation"

    md: List[str] = [
        f"## 🚦 PR Policy Gate: {status_icon} {report.status.value.upper()}",
        "",
        f"**PR:** `{repo_full_name}#{pr_number}` • **Head:** `{head_sha[:12]}`",
        "",
        "| Stage | Result |",
        "|-------|--------|",
        f"| Risk tier | `{tier}` |",
        f"| Required checks | {', '.join(f'`{c}`' for c in report.required_checks) or 'none'} |",
        f"| Docs drift | {docs} |",
        f"| Review agent | {_review_label(report.review_status)} |",
        "",
    ]
    if report.tier_reason:
        md.extend([f"**Tier reason:** {report.tier_reason}", ""])
    if report.review_url:
        md.extend([f"**Review details:** {report.review_url}", ""])
    if report.failure_reason:
        md.extend(
            [
                f"### {report.failure_label or 'Failure'}",
                "",
                "```",
                truncate(report.failure_reason, 4000),
                "```",
                "",
            ]
        )
    if report.changed_files:
        md.extend(["<details>", f"<summary>Changed files ({len(report.changed_files)})</summary>", ""])
        md.extend(f"- `{path}`" for path in report.changed_files[:200])
        if len(report.changed_files) > 200:
            md.append(f"- ...and {len(report.changed_files) - 200} more")
        md.extend(["", "</details>", ""])
    return "\n".join(md)


def write_step_summary(
    report: GateReport,
    summary_path: Optional[str],
    *,
    repo_full_name: str,
    pr_number: int,
    head_sha: str,
) -> None:
    """Append the gate summary to the GitHub Actions job summary."""
    if not summary_path:
        return
    with open(summary_path, "a", encoding="utf-8") as summary_file:
        summary_file.write(render_step_summary(report, repo_full_name, pr_number, head_sha))
