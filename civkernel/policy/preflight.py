# SPDX-License-Identifier: Apache-2.0
"""
Maintenance preflight gate.

The single pass/fail decision a caller invokes before letting a change
proceed. Only blocking violations become reasons; warnings never fail the
gate. FAIL always implies safe mode, human intervention and a halted
terminal outcome.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Tuple

from civkernel.foundation import safe_str
from civkernel.policy.engine import evaluate_policy
from civkernel.policy.inputs import EvaluationInput, coerce_input
from civkernel.policy.invariant_evaluator import evaluate_invariant_violations
from civkernel.policy.maintenance_rules import find_forbidden_targets
from civkernel.policy.outcome import OUTCOME_EXECUTED, OUTCOME_HALTED, DecisionOutcome, executed, halted
from civkernel.policy.text import quote_list

STATUS_PASS = "PASS"
STATUS_FAIL = "FAIL"

SAFE_MODE = "SAFE_MODE"
DEFAULT_SAFE_MODE_REASON = "maintenance_bot_failure"
FEATURE_NAME_REQUIRED = "featureName is required for maintenance preflight."


@dataclass(frozen=True)
class PreflightDecision:
    status: str
    reasons: Tuple[str, ...]
    safe_mode: bool
    requires_human_intervention: bool
    terminal_outcome: str

    @property
    def passed(self) -> bool:
        return self.status == STATUS_PASS

    def to_outcome(self) -> DecisionOutcome:
        if self.passed:
            return executed("Maintenance preflight passed.")
        return halted("Maintenance preflight failed.", {"reasons": self.reasons})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "reasons": list(self.reasons),
            "safe_mode": self.safe_mode,
            "requires_human_intervention": self.requires_human_intervention,
            "terminal_outcome": self.terminal_outcome,
        }


@dataclass(frozen=True)
class SafeModeFallback:
    mode: str
    reason: str
    automation_allowed: bool
    escalation_allowed: bool
    requires_human_intervention: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode,
            "reason": self.reason,
            "automation_allowed": self.automation_allowed,
            "escalation_allowed": self.escalation_allowed,
            "requires_human_intervention": self.requires_human_intervention,
        }


def get_safe_mode_fallback(reason: Any = None) -> SafeModeFallback:
    """Degraded-mode descriptor for callers that cannot run the evaluation at all."""
    return SafeModeFallback(
        mode=SAFE_MODE,
        reason=safe_str(reason, DEFAULT_SAFE_MODE_REASON),
        automation_allowed=False,
        escalation_allowed=False,
        requires_human_intervention=True,
    )


def evaluate_maintenance_preflight(raw: Mapping[str, Any] | EvaluationInput | None) -> PreflightDecision:
    request = coerce_input(raw, strict_flags=True)

    reasons: List[str] = []
    if not request.feature_name:
        reasons.append(FEATURE_NAME_REQUIRED)

    policy = evaluate_policy(request)
    invariants = evaluate_invariant_violations(request)

    reasons.extend(violation.message for violation in policy.violations)
    reasons.extend(violation.message for violation in invariants.violations)

    forbidden = find_forbidden_targets(request.declared_optimization_targets)
    if forbidden:
        reasons.append(f"Forbidden optimization target(s): {quote_list(forbidden)}.")

    failed = bool(reasons)
    return PreflightDecision(
        status=STATUS_FAIL if failed else STATUS_PASS,
        reasons=tuple(reasons),
        safe_mode=failed,
        requires_human_intervention=failed,
        terminal_outcome=OUTCOME_HALTED if failed else OUTCOME_EXECUTED,
    )


__all__ = [
    "DEFAULT_SAFE_MODE_REASON",
    "FEATURE_NAME_REQUIRED",
    "PreflightDecision",
    "SAFE_MODE",
    "STATUS_FAIL",
    "STATUS_PASS",
    "SafeModeFallback",
    "evaluate_maintenance_preflight",
    "get_safe_mode_fallback",
]
