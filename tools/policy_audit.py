# SPDX-License-Identifier: Apache-2.0
"""
Policy audit CLI: run the maintenance preflight, build a report or score drift
from a JSON payload.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, TextIO, Tuple

try:
    from civkernel import ELEMENT_ID, ledger, metrics
    from civkernel.foundation import canonical_json
    from civkernel.logger import get_logger
    from civkernel.policy.drift import DriftScore, compute_drift_score
    from civkernel.policy.preflight import PreflightDecision, evaluate_maintenance_preflight
    from civkernel.policy.report import MaintenanceReport, build_maintenance_report
except ModuleNotFoundError:  # pragma: no cover - fallback for direct script execution
    sys.path.append(str(Path(__file__).resolve().parents[1]))
    from civkernel import ELEMENT_ID, ledger, metrics
    from civkernel.foundation import canonical_json
    from civkernel.logger import get_logger
    from civkernel.policy.drift import DriftScore, compute_drift_score
    from civkernel.policy.preflight import PreflightDecision, evaluate_maintenance_preflight
    from civkernel.policy.report import MaintenanceReport, build_maintenance_report


class PayloadError(ValueError):
    """Raised when the input payload is not a JSON object."""


def load_payload(source: Optional[str], stdin: Optional[TextIO] = None) -> Dict[str, Any]:
    if source and source != "-":
        text = Path(source).read_text(encoding="utf-8")
    else:
        text = (stdin or sys.stdin).read()
    try:
        payload = json.loads(text) if text.strip() else {}
    except json.JSONDecodeError as exc:
        raise PayloadError(f"invalid_json:{exc}") from exc
    if not isinstance(payload, dict):
        raise PayloadError("payload_must_be_object")
    return payload


def run_preflight(payload: Dict[str, Any], persist: bool = False) -> Tuple[PreflightDecision, int]:
    decision = evaluate_maintenance_preflight(payload)
    if persist:
        ledger.append_entry({"action": "maintenance_preflight", "feature_name": payload.get("feature_name"), "decision": decision.to_dict()})
    metrics.log(
        event_type="cli_preflight",
        payload={"status": decision.status, "reasons": list(decision.reasons)},
        level="INFO" if decision.passed else "WARNING",
        element_id=ELEMENT_ID,
    )
    return decision, 0 if decision.passed else 1


def run_report(payload: Dict[str, Any], persist: bool = False) -> Tuple[MaintenanceReport, int]:
    report = build_maintenance_report(payload)
    if persist:
        ledger.append_entry({"action": "maintenance_report", "report": report.to_dict()})
    metrics.log(event_type="cli_report", payload={"feature_name": report.feature_name, "score": report.score}, element_id=ELEMENT_ID)
    return report, 0


def run_drift(payload: Dict[str, Any]) -> Tuple[DriftScore, int]:
    return compute_drift_score(payload), 0


def run_verify_ledger() -> Tuple[Dict[str, Any], int]:
    try:
        entries = ledger.verify_chain()
    except ledger.ReportLedgerIntegrityError as exc:
        return {"ok": False, "reason": str(exc)}, 1
    return {"ok": True, "entries": entries}, 0


def main(argv: Optional[List[str]] = None, stdin: Optional[TextIO] = None) -> int:
    parser = argparse.ArgumentParser(description="civkernel policy audit")
    parser.add_argument(
        "action",
        choices=["preflight", "report", "drift", "verify-ledger"],
        help="Evaluation to run against the payload.",
    )
    parser.add_argument("--input", "-i", help="Path to a JSON payload; '-' or omitted reads stdin.")
    parser.add_argument("--persist", action="store_true", help="Append preflight/report results to the report ledger.")
    args = parser.parse_args(argv)

    log = get_logger("cli")
    try:
        if args.action == "verify-ledger":
            result, code = run_verify_ledger()
        else:
            payload = load_payload(args.input, stdin)
            if args.action == "preflight":
                result, code = run_preflight(payload, persist=args.persist)
            elif args.action == "report":
                result, code = run_report(payload, persist=args.persist)
            else:
                result, code = run_drift(payload)
    except (OSError, PayloadError) as exc:
        log.error("policy_audit_input_error", error=exc, command=args.action)
        print(canonical_json({"error": str(exc)}), file=sys.stderr)
        return 2

    log.audit("policy_audit", actor="cli", outcome="ok" if code == 0 else "fail", command=args.action)
    print(canonical_json(result))
    return code


if __name__ == "__main__":
    raise SystemExit(main())
