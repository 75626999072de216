"""Policy contract loader for ``.pr-policy.json``."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, conint, field_validator

from .constants import RiskTier
from .errors import ConfigurationError, ParseError
from .globs import check_patterns
from .logging import GateLogger
from .utils import sha256_hex

REQUIRED_TOP_LEVEL_KEYS = (
    "version",
    "riskTierRules",
    "mergePolicy",
    "docsDriftRules",
    "reviewAgent",
    "shaPolicy",
)


class _ContractModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class MergePolicyEntry(_ContractModel):
    required_checks: Tuple[str, ...] = Field(alias="requiredChecks")
    required_human_reviewers: conint(ge=0) = Field(alias="requiredHumanReviewers")
    evidence_required: Tuple[str, ...] = Field(alias="evidenceRequired")
    auto_merge: bool = Field(alias="autoMerge")


class DocsDriftRule(_ContractModel):
    trigger: Tuple[str, ...]
    require_updated: Tuple[str, ...] = Field(alias="requireUpdated", min_length=1)
    message: str

    @field_validator("trigger", "require_updated")
    @classmethod
    def _patterns_compile(cls, value: Tuple[str, ...]) -> Tuple[str, ...]:
        check_patterns(value)
        return value


class ReviewAgentConfig(_ContractModel):
    provider: str
    check_run_name: str = Field(alias="checkRunName", min_length=1)
    timeout_minutes: conint(gt=0) = Field(alias="timeoutMinutes")
    rerun_marker: str = Field(alias="rerunMarker", min_length=1)
    rerun_command: str = Field(alias="rerunCommand", min_length=1)


class ShaPolicy(_ContractModel):
    """Revision freshness rules. Parsed and carried, not enforced."""

    require_current_head: bool = Field(alias="requireCurrentHead")
    stale_after_push_events: Tuple[str, ...] = Field(alias="staleAfterPushEvents")
    max_reruns_per_sha: conint(ge=0) = Field(alias="maxRerunsPerSha")


class PolicyContract(_ContractModel):
    version: str
    description: Optional[str] = None
    risk_tier_rules: Dict[RiskTier, Tuple[str, ...]] = Field(alias="riskTierRules")
    merge_policy: Dict[RiskTier, MergePolicyEntry] = Field(alias="mergePolicy")
    docs_drift_rules: Tuple[DocsDriftRule, ...] = Field(alias="docsDriftRules")
    review_agent: ReviewAgentConfig = Field(alias="reviewAgent")
    sha_policy: ShaPolicy = Field(alias="shaPolicy")

    @field_validator("risk_tier_rules", "merge_policy")
    @classmethod
    def _every_tier_present(cls, value: dict) -> dict:
        missing = [tier.value for tier in RiskTier if tier not in value]
        if missing:
            raise ValueError(f"missing entries for tier(s): {', '.join(missing)}")
        return value

    @field_validator("risk_tier_rules")
    @classmethod
    def _tier_patterns_compile(cls, value: dict) -> dict:
        for patterns in value.values():
            check_patterns(patterns)
        return value


def _format_validation_error(exc: ValidationError) -> List[str]:
    problems: List[str] = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ())) or "<root>"
        problems.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return problems


def parse_policy(raw: str, source: str = "policy") -> PolicyContract:
    """Parse and validate a policy document; raises ParseError."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Failed to parse {source}: {exc}") from exc

    if not isinstance(data, dict):
        raise ParseError(f"Failed to parse {source}: top-level value must be a JSON object")

    missing = [key for key in REQUIRED_TOP_LEVEL_KEYS if key not in data]
    if missing:
        raise ParseError(f"{source} is missing required keys: {', '.join(missing)}")

    try:
        return PolicyContract.model_validate(data)
    except ValidationError as exc:
        raise ParseError(f"{source} has an invalid shape:", _format_validation_error(exc)) from exc


def load_policy(path: Path, logger: Optional[GateLogger] = None) -> PolicyContract:
    """Read the policy contract from disk and validate it eagerly."""
    if not path.is_file():
        raise ConfigurationError(
            f"Policy file not found: {path}\n"
            "Create .pr-policy.json at the repository root to use the policy gate."
        )
    try:
        raw = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Failed to parse {path.name}: not valid UTF-8 ({exc})") from exc
    except OSError as exc:
        raise ConfigurationError(f"Policy file could not be read: {path} ({exc})") from exc

    policy = parse_policy(raw, source=path.name)
    if logger:
        logger.info(
            "policy_loaded",
            path=str(path),
            version=policy.version,
            policy_sha256=sha256_hex(raw.encode("utf-8")),
            docs_drift_rules=len(policy.docs_drift_rules),
        )
    return policy
