# SPDX-License-Identifier: Apache-2.0
"""
Invariant evaluator: run one dedicated check per registered invariant.

Every invariant in the registry must have a check in ``INVARIANT_CHECKS``;
an unmatched invariant surfaces as an ``invariant::coverage-gap`` warning so
the registry and the evaluator cannot drift apart silently.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from civkernel.policy.engine import IntentAllowance, resolve_intent_allowance
from civkernel.policy.inputs import EvaluationInput, coerce_input
from civkernel.policy.invariants import (
    INVARIANT_AUTHORITY_DECAYS,
    INVARIANT_INTENT_BEFORE_ACTION,
    INVARIANT_KNOWLEDGE_OVER_POSITION,
    INVARIANT_NO_CENTRAL_CONTROL,
    REQUIRED_INVARIANTS,
    Invariant,
)
from civkernel.policy.messages import PolicyMessage, messages_to_dicts

INVARIANT_COVERAGE_GAP = "invariant::coverage-gap"
INVARIANT_APPEND_ONLY_REQUIRED = "invariant::append-only-required"

# Ids carrying one of these markers are advisory.
WARNING_MARKERS: Tuple[str, ...] = ("approval-missing", "missing-evidence", ":mock-allowed")

InvariantCheck = Callable[[EvaluationInput, IntentAllowance], Optional[PolicyMessage]]


@dataclass(frozen=True)
class InvariantEvaluation:
    violations: Tuple[PolicyMessage, ...]
    warnings: Tuple[PolicyMessage, ...]

    @property
    def ok(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "violations": messages_to_dicts(self.violations),
            "warnings": messages_to_dicts(self.warnings),
        }


def _check_no_central_control(request: EvaluationInput, _: IntentAllowance) -> Optional[PolicyMessage]:
    if request.central_control_detected:
        return PolicyMessage(
            f"invariant::{INVARIANT_NO_CENTRAL_CONTROL}",
            "Central control signal detected; maintenance bot must not permit capture.",
        )
    return None


def _check_intent_before_action(_: EvaluationInput, allowance: IntentAllowance) -> Optional[PolicyMessage]:
    if allowance.intent_violation:
        return PolicyMessage(
            f"invariant::{INVARIANT_INTENT_BEFORE_ACTION}",
            "Intent binding missing; actions must remain traceable to declared intent.",
        )
    if allowance.intent_warning:
        return PolicyMessage(
            f"invariant::{INVARIANT_INTENT_BEFORE_ACTION}:mock-allowed",
            "Intent binding missing but explicitly allowed in mock mode.",
        )
    return None


def _check_authority_decays(request: EvaluationInput, _: IntentAllowance) -> Optional[PolicyMessage]:
    if request.authority_bypass_detected:
        return PolicyMessage(
            f"invariant::{INVARIANT_AUTHORITY_DECAYS}",
            "Authority bypass detected; approvals must remain accountable.",
        )
    if not request.requires_human_approval_for_r3:
        return PolicyMessage(
            f"invariant::{INVARIANT_AUTHORITY_DECAYS}:approval-missing",
            "Human approval plumbing is not enforced for high-risk changes.",
        )
    return None


def _check_knowledge_over_position(request: EvaluationInput, _: IntentAllowance) -> Optional[PolicyMessage]:
    if request.claims_without_evidence_detected:
        return PolicyMessage(
            f"invariant::{INVARIANT_KNOWLEDGE_OVER_POSITION}",
            "Claims without evidence detected; knowledge must stay verifiable.",
        )
    if request.evidence_missing:
        return PolicyMessage(
            f"invariant::{INVARIANT_KNOWLEDGE_OVER_POSITION}:missing-evidence",
            "Evidence signals missing; verify sources before escalation.",
        )
    return None


INVARIANT_CHECKS: Mapping[str, InvariantCheck] = MappingProxyType(
    {
        INVARIANT_NO_CENTRAL_CONTROL: _check_no_central_control,
        INVARIANT_INTENT_BEFORE_ACTION: _check_intent_before_action,
        INVARIANT_AUTHORITY_DECAYS: _check_authority_decays,
        INVARIANT_KNOWLEDGE_OVER_POSITION: _check_knowledge_over_position,
    }
)


def is_warning_id(message_id: str) -> bool:
    return any(marker in message_id for marker in WARNING_MARKERS)


def evaluate_invariant_violations(
    raw: Mapping[str, Any] | EvaluationInput | None,
    *,
    invariants: Sequence[Invariant] = REQUIRED_INVARIANTS,
    checks: Mapping[str, InvariantCheck] = INVARIANT_CHECKS,
) -> InvariantEvaluation:
    request = coerce_input(raw, strict_flags=True)
    allowance = resolve_intent_allowance(
        request.intents_present,
        request.mock_mode,
        request.allow_intentless_in_mock,
    )

    violations: List[PolicyMessage] = []
    warnings: List[PolicyMessage] = []

    for invariant in invariants:
        check = checks.get(invariant.id)
        if check is None:
            warnings.append(
                PolicyMessage(
                    INVARIANT_COVERAGE_GAP,
                    f"Invariant {invariant.id} has no explicit maintenance check wired yet.",
                )
            )
            continue
        result = check(request, allowance)
        if result is None:
            continue
        if is_warning_id(result.id):
            warnings.append(result)
        else:
            violations.append(result)

    if not request.append_only_preserved:
        violations.append(
            PolicyMessage(
                INVARIANT_APPEND_ONLY_REQUIRED,
                "Append-only guarantees must be preserved; destructive edits detected.",
            )
        )

    return InvariantEvaluation(violations=tuple(violations), warnings=tuple(warnings))


__all__ = [
    "INVARIANT_APPEND_ONLY_REQUIRED",
    "INVARIANT_CHECKS",
    "INVARIANT_COVERAGE_GAP",
    "InvariantCheck",
    "InvariantEvaluation",
    "WARNING_MARKERS",
    "evaluate_invariant_violations",
    "is_warning_id",
]
