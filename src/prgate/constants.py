from __future__ import annotations

from enum import Enum


class RiskTier(str, Enum):
    """Risk tiers a pull request can be classified into."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def priority(self) -> int:
        return TIER_PRIORITY[self]

    def outranks(self, other: "RiskTier") -> bool:
        return self.priority > other.priority


TIER_PRIORITY = {
    RiskTier.CRITICAL: 4,
    RiskTier.HIGH: 3,
    RiskTier.MEDIUM: 2,
    RiskTier.LOW: 1,
}

# Highest priority first.
TIERS_BY_PRIORITY = tuple(sorted(RiskTier, key=lambda tier: TIER_PRIORITY[tier], reverse=True))

TIERS_REQUIRING_REVIEW = frozenset({RiskTier.CRITICAL, RiskTier.HIGH, RiskTier.MEDIUM})

DEFAULT_TIER = RiskTier.LOW


class ExitCode(int, Enum):
    """Process exit codes."""

    SUCCESS = 0
    FAILED = 1


POLICY_FILENAME = ".pr-policy.json"
POLL_INTERVAL_SECONDS = 15
CHECK_RUN_COMPLETED = "completed"
CONCLUSION_SUCCESS = "success"
