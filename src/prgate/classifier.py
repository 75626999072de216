from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from .constants import DEFAULT_TIER, TIERS_BY_PRIORITY, RiskTier
from .globs import first_match


@dataclass(frozen=True)
class TierClassification:
    tier: RiskTier
    matched_file: Optional[str] = None
    matched_pattern: Optional[str] = None


def classify_changed_files(
    changed_files: Sequence[str],
    risk_tier_rules: Mapping[RiskTier, Sequence[str]],
) -> TierClassification:
    """
    Classify a changeset into the highest risk tier any file triggers.

    Per-file-then-maximum: a file matching several tiers counts for the
    highest one. Scanning stops at the first critical match since no tier
    ranks above it. Files matching no rule leave the default tier (low)
    with no deciding file.
    """
    best = TierClassification(tier=DEFAULT_TIER)

    for path in changed_files:
        for tier in TIERS_BY_PRIORITY:
            # Until something matches, low patterns are tried too so the
            # deciding file is known.
            if best.matched_file is not None and not tier.outranks(best.tier):
                break
            pattern = first_match(path, risk_tier_rules.get(tier, ()))
            if pattern is None:
                continue
            best = TierClassification(tier=tier, matched_file=path, matched_pattern=pattern)
            if tier is RiskTier.CRITICAL:
                return best
            break

    return best


def classify_risk_tier(
    changed_files: Sequence[str],
    risk_tier_rules: Mapping[RiskTier, Sequence[str]],
) -> RiskTier:
    return classify_changed_files(changed_files, risk_tier_rules).tier
