# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from app.api.maintenance import router as maintenance_router
from civkernel import ledger
from civkernel.config import load_settings
from civkernel.logger import get_logger
from civkernel.policy.constitution import CIV_CONSTITUTION
from civkernel.policy.invariants import REQUIRED_INVARIANTS

app = FastAPI(title="civkernel Policy Service")
app.include_router(maintenance_router)


@app.on_event("startup")
def _startup_checks() -> None:
    settings = load_settings()
    get_logger("server").info(
        "server_start",
        constitution_version=CIV_CONSTITUTION.version,
        invariants=len(REQUIRED_INVARIANTS),
        persist_reports=settings.persist_reports,
        ledger_path=str(settings.ledger_path),
    )


def _ledger_state() -> dict[str, Any]:
    """
    Best-effort ledger snapshot. A broken chain is reported, never repaired.
    """
    settings = load_settings()
    try:
        entries = ledger.verify_chain(settings.ledger_path)
    except ledger.ReportLedgerIntegrityError as exc:
        return {"ok": False, "entries": None, "reason": str(exc)}
    return {"ok": True, "entries": entries, "reason": None}


@app.get("/api/health")
def health() -> dict[str, Any]:
    ledger_state = _ledger_state()
    return {
        "ok": ledger_state["ok"],
        "constitution_version": CIV_CONSTITUTION.version,
        "invariants": len(REQUIRED_INVARIANTS),
        "ledger": ledger_state,
    }
