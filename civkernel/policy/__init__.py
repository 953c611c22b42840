# SPDX-License-Identifier: Apache-2.0
"""Constitution, invariants and the evaluation pipeline built on them."""

from __future__ import annotations

from civkernel.policy.constitution import CIV_CONSTITUTION, Constitution
from civkernel.policy.drift import DriftLineItem, DriftScore, compute_drift_score
from civkernel.policy.engine import PolicyResult, evaluate_policy
from civkernel.policy.inputs import EvaluationInput
from civkernel.policy.invariant_evaluator import InvariantEvaluation, evaluate_invariant_violations
from civkernel.policy.invariants import REQUIRED_INVARIANTS, Invariant
from civkernel.policy.maintenance_rules import MAINTENANCE_BOT_RULES
from civkernel.policy.messages import PolicyMessage
from civkernel.policy.outcome import DecisionOutcome, ensure_outcome
from civkernel.policy.preflight import (
    PreflightDecision,
    SafeModeFallback,
    evaluate_maintenance_preflight,
    get_safe_mode_fallback,
)
from civkernel.policy.report import MaintenanceReport, append_maintenance_report, build_maintenance_report

__all__ = [
    "CIV_CONSTITUTION",
    "Constitution",
    "DecisionOutcome",
    "DriftLineItem",
    "DriftScore",
    "EvaluationInput",
    "Invariant",
    "InvariantEvaluation",
    "MAINTENANCE_BOT_RULES",
    "MaintenanceReport",
    "PolicyMessage",
    "PolicyResult",
    "PreflightDecision",
    "REQUIRED_INVARIANTS",
    "SafeModeFallback",
    "append_maintenance_report",
    "build_maintenance_report",
    "compute_drift_score",
    "ensure_outcome",
    "evaluate_invariant_violations",
    "evaluate_maintenance_preflight",
    "evaluate_policy",
    "get_safe_mode_fallback",
]
