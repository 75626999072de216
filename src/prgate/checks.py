from __future__ import annotations

from typing import List, Mapping

from .constants import TIERS_REQUIRING_REVIEW, RiskTier
from .errors import ParseError
from .policy import MergePolicyEntry


def compute_required_checks(tier: RiskTier, merge_policy: Mapping[RiskTier, MergePolicyEntry]) -> List[str]:
    """Required CI check names for ``tier``, as listed in the contract."""
    try:
        entry = merge_policy[tier]
    except KeyError:
        raise ParseError(f'mergePolicy has no entry for tier "{tier.value}"') from None
    return list(entry.required_checks)


def needs_review_agent(tier: RiskTier) -> bool:
    return tier in TIERS_REQUIRING_REVIEW
