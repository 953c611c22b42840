# SPDX-License-Identifier: Apache-2.0
"""
Maintenance report builder.

Composes the policy engine, invariant evaluator and drift calculator into a
single immutable report: the unit surfaced to operators and dashboards.
The builder only evaluates; persistence belongs to the caller (see
``civkernel.ledger``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Tuple

from civkernel.policy.drift import DriftLineItem, DriftScore, compute_drift_score
from civkernel.policy.engine import UNKNOWN_FEATURE, evaluate_policy, resolve_intent_allowance
from civkernel.policy.inputs import EvaluationInput, coerce_input
from civkernel.policy.invariant_evaluator import evaluate_invariant_violations
from civkernel.policy.maintenance_rules import find_forbidden_targets
from civkernel.policy.messages import PolicyMessage, messages_to_dicts

REPORT_VERSION = "v1"
TIMESTAMP_MISSING = "timestamp_missing"
DEFAULT_HISTORY_LIMIT = 50

MAINTENANCE_FORBIDDEN_TARGET = "maintenance::forbidden-optimization-target"
NO_DRIFT_OBSERVATION = "Observation: no drift indicators detected."


@dataclass(frozen=True)
class MaintenanceReport:
    version: str
    timestamp: str
    feature_name: str
    drift_score: DriftScore
    invariant_violations: Tuple[PolicyMessage, ...]
    warnings: Tuple[PolicyMessage, ...]
    recommendations: Tuple[str, ...]

    @property
    def score(self) -> int:
        return self.drift_score.score

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "timestamp": self.timestamp,
            "feature_name": self.feature_name,
            "drift_score": self.drift_score.to_dict(),
            "invariant_violations": messages_to_dicts(self.invariant_violations),
            "warnings": messages_to_dicts(self.warnings),
            "recommendations": list(self.recommendations),
        }


def build_recommendations(lines: Iterable[DriftLineItem]) -> Tuple[str, ...]:
    observations = [f"Observation: {line.label} flagged ({line.count})." for line in lines if line.penalty != 0]
    return tuple(observations) if observations else (NO_DRIFT_OBSERVATION,)


def build_maintenance_report(raw: Mapping[str, Any] | EvaluationInput | None) -> MaintenanceReport:
    request = coerce_input(raw, strict_flags=True)
    feature_name = request.feature_name or UNKNOWN_FEATURE

    policy = evaluate_policy(request)
    invariants = evaluate_invariant_violations(request)
    forbidden = find_forbidden_targets(request.declared_optimization_targets)
    allowance = resolve_intent_allowance(
        request.intents_present,
        request.mock_mode,
        request.allow_intentless_in_mock,
    )

    drift = compute_drift_score(
        {
            "invariant_violations_count": len(invariants.violations),
            "prohibited_target_hits_count": len(forbidden),
            "missing_intent_count": 1 if allowance.intent_violation else 0,
            "append_only_breach_count": 0 if request.append_only_preserved else 1,
            "missing_approval_count": 0 if request.requires_human_approval_for_r3 else 1,
        }
    )

    warnings: List[PolicyMessage] = list(policy.warnings)
    warnings.extend(PolicyMessage(item.id, f"Violation: {item.message}") for item in policy.violations)
    warnings.extend(invariants.warnings)
    warnings.extend(
        PolicyMessage(MAINTENANCE_FORBIDDEN_TARGET, f'Violation: Forbidden optimization target "{target}".')
        for target in forbidden
    )

    return MaintenanceReport(
        version=REPORT_VERSION,
        timestamp=request.timestamp or TIMESTAMP_MISSING,
        feature_name=feature_name,
        drift_score=drift,
        invariant_violations=invariants.violations,
        warnings=tuple(warnings),
        recommendations=build_recommendations(drift.lines),
    )


def append_maintenance_report(
    history: Iterable[MaintenanceReport] | None,
    report: MaintenanceReport,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> Tuple[MaintenanceReport, ...]:
    """Return a new history ending with ``report``, keeping at most ``limit`` entries.

    A non-positive ``limit`` keeps the whole history. The input history is
    never mutated.
    """
    base = tuple(history or ())
    combined = (*base, report)
    if limit <= 0:
        return combined
    return combined[-limit:]


__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "MAINTENANCE_FORBIDDEN_TARGET",
    "MaintenanceReport",
    "NO_DRIFT_OBSERVATION",
    "REPORT_VERSION",
    "TIMESTAMP_MISSING",
    "append_maintenance_report",
    "build_maintenance_report",
    "build_recommendations",
]
