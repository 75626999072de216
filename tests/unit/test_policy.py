from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import pytest

from prgate.checks import compute_required_checks, needs_review_agent
from prgate.constants import RiskTier
from prgate.errors import ConfigurationError, ParseError
from prgate.policy import load_policy, parse_policy


def test_load_policy_parses_contract(policy_file: Path) -> None:
    policy = load_policy(policy_file)

    assert policy.version == "1.0"
    assert policy.risk_tier_rules[RiskTier.CRITICAL] == ("infra/**", ".github/workflows/**")
    assert policy.merge_policy[RiskTier.LOW].auto_merge is True
    assert policy.docs_drift_rules[0].require_updated == ("docs/**",)
    assert policy.review_agent.check_run_name == "ai-review"
    assert policy.review_agent.timeout_minutes == 1
    assert policy.sha_policy.max_reruns_per_sha == 1


def test_missing_file_is_configuration_error(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        load_policy(tmp_path / ".pr-policy.json")
    assert "Policy file not found" in str(excinfo.value)


def test_invalid_json_is_parse_error() -> None:
    with pytest.raises(ParseError) as excinfo:
        parse_policy("{ not json")
    assert "Failed to parse" in str(excinfo.value)


def test_non_object_root_is_parse_error() -> None:
    with pytest.raises(ParseError):
        parse_policy("[1, 2, 3]")


def test_missing_top_level_keys_are_listed(policy_dict: Dict[str, Any]) -> None:
    del policy_dict["reviewAgent"]
    del policy_dict["shaPolicy"]
    with pytest.raises(ParseError) as excinfo:
        parse_policy(json.dumps(policy_dict))
    message = str(excinfo.value)
    assert "reviewAgent" in message
    assert "shaPolicy" in message


def test_unknown_tier_is_rejected(policy_dict: Dict[str, Any]) -> None:
    policy_dict["riskTierRules"]["urgent"] = ["x/**"]
    with pytest.raises(ParseError) as excinfo:
        parse_policy(json.dumps(policy_dict))
    assert "riskTierRules" in str(excinfo.value)


def test_merge_policy_requires_every_tier(policy_dict: Dict[str, Any]) -> None:
    del policy_dict["mergePolicy"]["medium"]
    with pytest.raises(ParseError) as excinfo:
        parse_policy(json.dumps(policy_dict))
    assert "medium" in str(excinfo.value)


def test_nested_shape_errors_are_reported(policy_dict: Dict[str, Any]) -> None:
    policy_dict["reviewAgent"]["timeoutMinutes"] = "soon"
    del policy_dict["docsDriftRules"][0]["message"]
    with pytest.raises(ParseError) as excinfo:
        parse_policy(json.dumps(policy_dict))
    assert len(excinfo.value.problems) >= 2


def test_contract_is_frozen(policy_file: Path) -> None:
    policy = load_policy(policy_file)
    with pytest.raises(Exception):
        policy.version = "2.0"


def test_required_checks_lookup(policy_file: Path) -> None:
    policy = load_policy(policy_file)
    assert compute_required_checks(RiskTier.CRITICAL, policy.merge_policy) == ["lint", "tests", "ai-review"]
    assert compute_required_checks(RiskTier.LOW, policy.merge_policy) == ["lint"]


def test_required_checks_missing_tier_is_parse_error() -> None:
    with pytest.raises(ParseError):
        compute_required_checks(RiskTier.HIGH, {})


def test_needs_review_agent_for_all_but_low() -> None:
    assert needs_review_agent(RiskTier.CRITICAL) is True
    assert needs_review_agent(RiskTier.HIGH) is True
    assert needs_review_agent(RiskTier.MEDIUM) is True
    assert needs_review_agent(RiskTier.LOW) is False


def test_malformed_tier_glob_is_parse_error(policy_dict: Dict[str, Any]) -> None:
    policy_dict["riskTierRules"]["high"] = ["src/[z-a].ts"]
    with pytest.raises(ParseError) as excinfo:
        parse_policy(json.dumps(policy_dict))
    assert "src/[z-a].ts" in str(excinfo.value)
    assert "riskTierRules" in str(excinfo.value)


def test_malformed_docs_drift_glob_is_parse_error(policy_dict: Dict[str, Any]) -> None:
    policy_dict["docsDriftRules"][0]["requireUpdated"] = ["docs/[9-0]*.md"]
    with pytest.raises(ParseError) as excinfo:
        parse_policy(json.dumps(policy_dict))
    assert "docsDriftRules" in str(excinfo.value)


def test_non_utf8_policy_is_parse_error(tmp_path: Path) -> None:
    path = tmp_path / ".pr-policy.json"
    path.write_bytes(b'{"version": "\xff"}')
    with pytest.raises(ParseError) as excinfo:
        load_policy(path)
    assert "not valid UTF-8" in str(excinfo.value)
