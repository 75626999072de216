from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .constants import RiskTier


class GateStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"


class ReviewStatus(str, Enum):
    NOT_REQUIRED = "not_required"
    PASSED = "passed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    PENDING = "pending"


@dataclass
class GateReport:
    """Accumulated state of one gate run, filled in stage by stage."""

    status: GateStatus = GateStatus.FAILED
    risk_tier: Optional[RiskTier] = None
    tier_reason: Optional[str] = None
    required_checks: List[str] = field(default_factory=list)
    changed_files: List[str] = field(default_factory=list)
    docs_drift_ok: Optional[bool] = None
    review_status: ReviewStatus = ReviewStatus.PENDING
    review_url: Optional[str] = None
    failure_label: Optional[str] = None
    failure_reason: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status == GateStatus.PASSED
