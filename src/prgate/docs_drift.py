"""Docs drift enforcement: risky code changes must ship with their docs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .errors import DocsDriftViolation
from .globs import any_file_matches, matches_any
from .logging import GateLogger
from .policy import DocsDriftRule


@dataclass(frozen=True)
class DocsDriftResult:
    rule: DocsDriftRule
    triggered: bool
    satisfied: bool
    trigger_files: tuple[str, ...] = ()

    @property
    def violated(self) -> bool:
        return self.triggered and not self.satisfied


def evaluate_rule(changed_files: Sequence[str], rule: DocsDriftRule) -> DocsDriftResult:
    trigger_files = tuple(f for f in changed_files if matches_any(f, rule.trigger))
    if not trigger_files:
        return DocsDriftResult(rule=rule, triggered=False, satisfied=True)
    satisfied = any_file_matches(changed_files, rule.require_updated)
    return DocsDriftResult(rule=rule, triggered=True, satisfied=satisfied, trigger_files=trigger_files)


def evaluate_docs_drift(changed_files: Sequence[str], rules: Sequence[DocsDriftRule]) -> List[DocsDriftResult]:
    return [evaluate_rule(changed_files, rule) for rule in rules]


def format_violations(violations: Sequence[DocsDriftResult], changed_files: Sequence[str]) -> str:
    lines: List[str] = []
    for result in violations:
        lines.append(f"Docs drift violation: {result.rule.message}")
        lines.append(
            f"  At least one of these files must be updated: {', '.join(result.rule.require_updated)}"
        )
        lines.append(f"  Triggered by: {', '.join(result.trigger_files)}")
    lines.append(f"  Changed files in this PR: {', '.join(changed_files) or '(none)'}")
    return "\n".join(lines)


def assert_docs_drift_rules(
    changed_files: Sequence[str],
    rules: Sequence[DocsDriftRule],
    logger: Optional[GateLogger] = None,
) -> List[DocsDriftResult]:
    """
    Evaluate every rule and raise DocsDriftViolation if any is violated.

    All rules are evaluated before failing so the error lists every
    missing companion update, not just the first.
    """
    results = evaluate_docs_drift(changed_files, rules)
    if logger:
        for result in results:
            logger.info(
                "docs_drift_rule",
                rule=result.rule.message,
                triggered=result.triggered,
                satisfied=result.satisfied,
                trigger_files=list(result.trigger_files),
            )

    violations = [r for r in results if r.violated]
    if violations:
        raise DocsDriftViolation(format_violations(violations, changed_files), violations)
    return results
