# SPDX-License-Identifier: Apache-2.0
"""
Policy engine: evaluate a proposed feature against the constitution's
non-goals and the structural requirements every change must carry.

Violations block shipping; warnings are advisory. Evaluation is pure: the
same input always yields an equal ``PolicyResult`` and nothing is raised
for control flow.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from civkernel.policy.constitution import CIV_CONSTITUTION
from civkernel.policy.inputs import EvaluationInput, coerce_input
from civkernel.policy.messages import PolicyMessage, messages_to_dicts
from civkernel.policy.text import find_prohibited_hits, quote_list, unique_normalized

UNKNOWN_FEATURE = "unknown"

POLICY_PROHIBITED_TARGET = "policy::prohibited-optimization-target"
POLICY_INTENT_REQUIRED = "policy::intent-required"
POLICY_INTENT_MOCK_ALLOWED = "policy::intent-missing-mock-allowed"
POLICY_APPEND_ONLY_REQUIRED = "policy::append-only-required"
POLICY_MISSING_APPROVAL = "policy::missing-human-approval-plumbing"


@dataclass(frozen=True)
class PolicyResult:
    ok: bool
    violations: Tuple[PolicyMessage, ...]
    warnings: Tuple[PolicyMessage, ...]
    feature_name: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "violations": messages_to_dicts(self.violations),
            "warnings": messages_to_dicts(self.warnings),
            "feature_name": self.feature_name,
        }


@dataclass(frozen=True)
class IntentAllowance:
    intents_present: bool
    intent_violation: bool
    intent_warning: bool


def resolve_intent_allowance(intents_present: bool, mock_mode: bool, allow_intentless_in_mock: bool) -> IntentAllowance:
    """Missing intent is tolerated (as a warning) only in mock mode with an explicit allowance."""
    if not intents_present and mock_mode and allow_intentless_in_mock:
        return IntentAllowance(intents_present=True, intent_violation=False, intent_warning=True)
    return IntentAllowance(intents_present=intents_present, intent_violation=not intents_present, intent_warning=False)


def prohibited_targets() -> Tuple[str, ...]:
    return unique_normalized(CIV_CONSTITUTION.non_goals)


def find_prohibited_target_hits(declared_targets: Tuple[str, ...]) -> Tuple[str, ...]:
    return find_prohibited_hits(declared_targets, prohibited_targets())


def evaluate_policy(raw: Mapping[str, Any] | EvaluationInput | None) -> PolicyResult:
    request = coerce_input(raw)
    feature_name = request.feature_name or UNKNOWN_FEATURE

    violations: List[PolicyMessage] = []
    warnings: List[PolicyMessage] = []

    hits = find_prohibited_target_hits(request.declared_optimization_targets)
    if hits:
        violations.append(
            PolicyMessage(POLICY_PROHIBITED_TARGET, f"Prohibited optimization target(s): {quote_list(hits)}.")
        )

    if not request.intents_present:
        if request.mock_mode and request.allow_intentless_in_mock:
            warnings.append(
                PolicyMessage(POLICY_INTENT_MOCK_ALLOWED, "Intent is missing, but explicitly allowed in mock mode.")
            )
        else:
            violations.append(
                PolicyMessage(
                    POLICY_INTENT_REQUIRED,
                    "Intent is required before action/optimization (intent_before_action).",
                )
            )

    if not request.append_only_preserved:
        violations.append(
            PolicyMessage(POLICY_APPEND_ONLY_REQUIRED, "Append-only history must be preserved (no destructive edits).")
        )

    # Partial rollout of approval plumbing must not halt shipping.
    if not request.requires_human_approval_for_r3:
        warnings.append(
            PolicyMessage(POLICY_MISSING_APPROVAL, "Human approval for R3 is not fully enforced yet (warning only).")
        )

    return PolicyResult(
        ok=not violations,
        violations=tuple(violations),
        warnings=tuple(warnings),
        feature_name=feature_name,
    )


__all__ = [
    "IntentAllowance",
    "POLICY_APPEND_ONLY_REQUIRED",
    "POLICY_INTENT_MOCK_ALLOWED",
    "POLICY_INTENT_REQUIRED",
    "POLICY_MISSING_APPROVAL",
    "POLICY_PROHIBITED_TARGET",
    "PolicyResult",
    "UNKNOWN_FEATURE",
    "evaluate_policy",
    "find_prohibited_target_hits",
    "prohibited_targets",
    "resolve_intent_allowance",
]
