from __future__ import annotations

from typing import Dict, List

from prgate.classifier import classify_changed_files, classify_risk_tier
from prgate.constants import RiskTier
from prgate.globs import glob_match

RULES: Dict[RiskTier, List[str]] = {
    RiskTier.CRITICAL: ["infra/**"],
    RiskTier.HIGH: ["src/api/**"],
    RiskTier.MEDIUM: ["src/**"],
    RiskTier.LOW: ["**/*.md"],
}


def test_unmatched_files_default_to_low() -> None:
    assert classify_risk_tier(["README.txt", "misc/notes"], RULES) == RiskTier.LOW
    assert classify_risk_tier([], RULES) == RiskTier.LOW


def test_low_pattern_only_gives_low() -> None:
    assert classify_risk_tier(["README.md"], RULES) == RiskTier.LOW


def test_file_matching_medium_and_high_resolves_to_high() -> None:
    # src/api/x.ts matches both src/** (medium) and src/api/** (high)
    assert classify_risk_tier(["src/api/x.ts"], RULES) == RiskTier.HIGH


def test_maximum_across_files() -> None:
    files = ["README.md", "src/util.ts", "src/api/payments.ts"]
    assert classify_risk_tier(files, RULES) == RiskTier.HIGH


def test_critical_wins() -> None:
    result = classify_changed_files(["infra/terraform/prod.tf"], RULES)
    assert result.tier == RiskTier.CRITICAL
    assert result.matched_file == "infra/terraform/prod.tf"
    assert result.matched_pattern == "infra/**"


def test_critical_short_circuits_remaining_files(monkeypatch) -> None:
    seen: List[str] = []

    def _recording_match(path: str, pattern: str) -> bool:
        seen.append(path)
        return glob_match(path, pattern)

    monkeypatch.setattr("prgate.globs.glob_match", _recording_match)
    files = ["infra/main.tf", "src/api/a.ts", "src/b.ts"]
    assert classify_risk_tier(files, RULES) == RiskTier.CRITICAL
    assert seen == ["infra/main.tf"]


def test_adding_files_never_lowers_critical() -> None:
    base = ["infra/main.tf"]
    for extra in (["README.md"], ["src/api/a.ts"], ["src/x.ts", "docs/a.md", "other"]):
        assert classify_risk_tier(base + extra, RULES) == RiskTier.CRITICAL
        assert classify_risk_tier(extra + base, RULES) == RiskTier.CRITICAL


def test_missing_tier_rules_are_treated_as_empty() -> None:
    rules = {RiskTier.HIGH: ["src/**"]}
    assert classify_risk_tier(["src/a.py"], rules) == RiskTier.HIGH


def test_dotfiles_are_matchable() -> None:
    rules = {RiskTier.CRITICAL: [".github/**"], RiskTier.HIGH: [], RiskTier.MEDIUM: [], RiskTier.LOW: []}
    assert classify_risk_tier([".github/workflows/ci.yml"], rules) == RiskTier.CRITICAL


def test_low_match_is_recorded() -> None:
    result = classify_changed_files(["misc/notes", "README.md"], RULES)
    assert result.tier == RiskTier.LOW
    assert result.matched_file == "README.md"
    assert result.matched_pattern == "**/*.md"


def test_unmatched_default_has_no_deciding_file() -> None:
    result = classify_changed_files(["misc/notes"], RULES)
    assert result.tier == RiskTier.LOW
    assert result.matched_file is None


def test_higher_tier_replaces_low_match() -> None:
    result = classify_changed_files(["README.md", "src/util.ts"], RULES)
    assert result.tier == RiskTier.MEDIUM
    assert result.matched_file == "src/util.ts"
