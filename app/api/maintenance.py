# SPDX-License-Identifier: Apache-2.0
"""
Module: maintenance
Purpose: HTTP surface over the policy kernel, maintenance reports and history ledger.
Integration points:
  - Imports from: civkernel.policy, civkernel.history, civkernel.ledger, civkernel.logger, civkernel.metrics
  - Consumed by: server.py
  - Governance impact: read-only evaluation; persistence only through the report ledger
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from civkernel import ELEMENT_ID, ledger, metrics
from civkernel.config import load_settings
from civkernel.history.kernel import (
    HistoryClaimError,
    HistoryState,
    append_history_challenge,
    append_history_claim,
    create_history_state,
    evaluate_history_usage,
    get_history_ledger,
    query_history_claims,
)
from civkernel.logger import get_logger
from civkernel.policy.constitution import CIV_CONSTITUTION
from civkernel.policy.drift import compute_drift_score
from civkernel.policy.engine import evaluate_policy
from civkernel.policy.invariant_evaluator import evaluate_invariant_violations
from civkernel.policy.invariants import REQUIRED_INVARIANTS
from civkernel.policy.maintenance_rules import MAINTENANCE_BOT_RULES
from civkernel.policy.preflight import evaluate_maintenance_preflight, get_safe_mode_fallback
from civkernel.policy.report import MaintenanceReport, append_maintenance_report, build_maintenance_report

router = APIRouter()

T = TypeVar("T")


def _log():
    return get_logger("api")


class EvaluationRequest(BaseModel):
    feature_name: str = ""
    declared_optimization_targets: List[str] = Field(default_factory=list)
    intents_present: bool = False
    append_only_preserved: bool = False
    requires_human_approval_for_r3: bool = False
    mock_mode: bool = False
    allow_intentless_in_mock: bool = False
    central_control_detected: bool = False
    authority_bypass_detected: bool = False
    claims_without_evidence_detected: bool = False
    evidence_missing: bool = False
    timestamp: str = ""


class ReportRequest(EvaluationRequest):
    persist: Optional[bool] = None


class DriftRequest(BaseModel):
    invariant_violations_count: float = 0
    prohibited_target_hits_count: float = 0
    missing_intent_count: float = 0
    append_only_breach_count: float = 0
    missing_approval_count: float = 0


class SourceModel(BaseModel):
    author: str
    type: str
    date: str


class HistoryClaimRequest(BaseModel):
    claim_text: str
    time_range: str
    geography: str
    domain: str
    sources: List[SourceModel]
    counter_sources: List[SourceModel] = Field(default_factory=list)
    evidence_grade: str
    confidence_score: float
    controversy_score: float
    added_by: str
    falsifiable_prompt: str
    writer_role: Optional[str] = None
    claim_id: Optional[str] = None
    added_at: Optional[str] = None
    challenge_of: Optional[str] = None


class HistoryQueryRequest(BaseModel):
    explicit_query: bool = False
    intent_id: str = ""
    domain: Optional[str] = None
    geography: Optional[str] = None
    time_range: Optional[str] = None


class HistoryUsageRequest(BaseModel):
    explicit_intent: bool = False
    purpose: str = ""
    overrides_constitution: bool = False
    overrides_invariants: bool = False


class _ServiceState:
    """In-process report history and history ledger shared by the handlers."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.reports: Tuple[MaintenanceReport, ...] = ()
        self.history: HistoryState = create_history_state()

    def reset(self) -> None:
        with self.lock:
            self.reports = ()
            self.history = create_history_state()


STATE = _ServiceState()


def reset_service_state() -> None:
    STATE.reset()


def _safe_mode(action: str, fn: Callable[[], T]) -> T:
    try:
        return fn()
    except HTTPException:
        raise
    except Exception as exc:
        fallback = get_safe_mode_fallback(f"{action}_failed")
        _log().error("safe_mode_fallback", error=exc, action=action)
        metrics.log(event_type="safe_mode_fallback", payload=fallback.to_dict(), level="ERROR", element_id=ELEMENT_ID)
        raise HTTPException(status_code=503, detail=fallback.to_dict()) from exc


@router.get("/api/policy/constitution")
def constitution() -> Dict[str, Any]:
    return CIV_CONSTITUTION.to_dict()


@router.get("/api/policy/invariants")
def invariants() -> Dict[str, Any]:
    return {"invariants": [invariant.to_dict() for invariant in REQUIRED_INVARIANTS]}


@router.post("/api/policy/evaluate")
def policy_evaluate(request: EvaluationRequest) -> Dict[str, Any]:
    result = _safe_mode("policy_evaluate", lambda: evaluate_policy(request.model_dump()))
    metrics.log(
        event_type="policy_evaluated",
        payload={"feature_name": result.feature_name, "ok": result.ok, "violations": len(result.violations)},
        element_id=ELEMENT_ID,
    )
    return result.to_dict()


@router.post("/api/policy/invariants/evaluate")
def invariants_evaluate(request: EvaluationRequest) -> Dict[str, Any]:
    result = _safe_mode("invariants_evaluate", lambda: evaluate_invariant_violations(request.model_dump()))
    return result.to_dict()


@router.post("/api/policy/drift")
def drift(request: DriftRequest) -> Dict[str, Any]:
    return _safe_mode("drift_score", lambda: compute_drift_score(request.model_dump())).to_dict()


@router.post("/api/maintenance/report")
def maintenance_report(request: ReportRequest) -> Dict[str, Any]:
    settings = load_settings()
    body = request.model_dump(exclude={"persist"})
    report = _safe_mode("maintenance_report", lambda: build_maintenance_report(body))

    with STATE.lock:
        STATE.reports = append_maintenance_report(STATE.reports, report, settings.report_history_limit)

    persist = settings.persist_reports if request.persist is None else request.persist
    entry_hash = None
    if persist:
        entry = _safe_mode(
            "maintenance_report_persist",
            lambda: ledger.append_entry({"action": "maintenance_report", "report": report.to_dict()}, settings.ledger_path),
        )
        entry_hash = entry["entry_hash"]

    _log().bind(feature_name=report.feature_name).audit(
        "maintenance_report",
        actor=ELEMENT_ID,
        outcome="persisted" if persist else "built",
        score=report.score,
        entry_hash=entry_hash,
    )
    metrics.log(
        event_type="maintenance_report_built",
        payload={"feature_name": report.feature_name, "score": report.score, "persisted": bool(persist)},
        element_id=ELEMENT_ID,
    )
    return {"report": report.to_dict(), "persisted": bool(persist), "entry_hash": entry_hash}


@router.post("/api/maintenance/preflight")
def maintenance_preflight(request: ReportRequest) -> Dict[str, Any]:
    settings = load_settings()
    decision = _safe_mode("maintenance_preflight", lambda: evaluate_maintenance_preflight(request.model_dump(exclude={"persist"})))

    persist = settings.persist_reports if request.persist is None else request.persist
    if persist:
        _safe_mode(
            "maintenance_preflight_persist",
            lambda: ledger.append_entry(
                {"action": "maintenance_preflight", "feature_name": request.feature_name, "decision": decision.to_dict()},
                settings.ledger_path,
            ),
        )

    _log().bind(feature_name=request.feature_name).audit(
        "maintenance_preflight",
        actor=ELEMENT_ID,
        outcome=decision.status,
        reasons=list(decision.reasons),
    )
    metrics.log(
        event_type="maintenance_preflight",
        payload={"feature_name": request.feature_name, "status": decision.status},
        level="INFO" if decision.passed else "WARNING",
        element_id=ELEMENT_ID,
    )
    return {**decision.to_dict(), "outcome": decision.to_outcome().to_dict()}


@router.get("/api/maintenance/rules")
def maintenance_rules() -> Dict[str, Any]:
    return MAINTENANCE_BOT_RULES.to_dict()


@router.get("/api/maintenance/reports")
def maintenance_reports(limit: int = Query(default=50, ge=1, le=1000)) -> Dict[str, Any]:
    settings = load_settings()
    with STATE.lock:
        recent = STATE.reports[-limit:]
    return {
        "reports": [report.to_dict() for report in recent],
        "ledger": ledger.read_entries(limit, settings.ledger_path),
    }


@router.post("/api/history/claims")
def history_claims(request: HistoryClaimRequest) -> Dict[str, Any]:
    payload = request.model_dump(exclude_none=True)
    append = append_history_challenge if request.challenge_of else append_history_claim
    with STATE.lock:
        try:
            STATE.history, claim = append(STATE.history, payload)
        except HistoryClaimError as exc:
            _log().warning("history_claim_rejected", reason=str(exc))
            raise HTTPException(status_code=400, detail={"status": "REJECTED", "reason": str(exc)}) from exc
        total = len(STATE.history.claims)

    _log().audit("history_claim_appended", actor=claim.added_by.value, outcome="ok", claim_id=claim.claim_id)
    metrics.log(event_type="history_claim_appended", payload={"claim_id": claim.claim_id, "domain": claim.domain.value}, element_id=ELEMENT_ID)
    return {"claim": claim.to_dict(), "total_claims": total}


@router.get("/api/history/claims")
def history_ledger() -> Dict[str, Any]:
    with STATE.lock:
        claims = get_history_ledger(STATE.history.claims)
    return {"claims": [claim.to_dict() for claim in claims]}


@router.post("/api/history/query")
def history_query(request: HistoryQueryRequest) -> Dict[str, Any]:
    with STATE.lock:
        state = STATE.history
    try:
        result = query_history_claims(state, request.model_dump(exclude_none=True))
    except HistoryClaimError as exc:
        raise HTTPException(status_code=400, detail={"status": "REJECTED", "reason": str(exc)}) from exc
    return result.to_dict()


@router.post("/api/history/usage")
def history_usage(request: HistoryUsageRequest) -> Dict[str, Any]:
    return evaluate_history_usage(request.model_dump()).to_dict()


__all__ = ["router", "reset_service_state"]
