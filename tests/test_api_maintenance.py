# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import server
from app.api import maintenance


@pytest.fixture()
def client():
    maintenance.reset_service_state()
    with TestClient(server.app) as test_client:
        yield test_client
    maintenance.reset_service_state()


def _feature(**overrides):
    payload = {
        "feature_name": "growth-bot",
        "declared_optimization_targets": ["customer retention"],
        "intents_present": True,
        "append_only_preserved": True,
        "requires_human_approval_for_r3": True,
    }
    payload.update(overrides)
    return payload


def _claim(**overrides):
    payload = {
        "claim_text": "Rail freight rates fell by half between 1870 and 1890.",
        "time_range": "1870-1890",
        "geography": "United States",
        "domain": "economics",
        "sources": [
            {"author": "ICC", "type": "data", "date": "1891"},
            {"author": "R. Fogel", "type": "secondary", "date": "1964"},
        ],
        "evidence_grade": "A",
        "confidence_score": 0.9,
        "controversy_score": 0.2,
        "added_by": "system",
        "falsifiable_prompt": "Do tariff filings from 1885 contradict the decline?",
    }
    payload.update(overrides)
    return payload


def test_health_reports_ledger_state(client) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["constitution_version"] == "v1"
    assert body["ledger"]["entries"] == 0


def test_constitution_and_invariants_are_published(client) -> None:
    constitution = client.get("/api/policy/constitution").json()
    invariants = client.get("/api/policy/invariants").json()["invariants"]

    assert "engagement" in constitution["non_goals"]
    assert [item["id"] for item in invariants] == [
        "no_central_control",
        "intent_before_action",
        "authority_decays_without_contribution",
        "knowledge_over_position",
    ]


def test_policy_evaluate_flags_engagement(client) -> None:
    response = client.post("/api/policy/evaluate", json=_feature(declared_optimization_targets=["engagement"]))

    body = response.json()
    assert response.status_code == 200
    assert body["ok"] is False
    assert body["violations"][0]["id"] == "policy::prohibited-optimization-target"


def test_drift_endpoint_scores_counts(client) -> None:
    response = client.post("/api/policy/drift", json={"invariant_violations_count": 1})

    assert response.json()["score"] == 65


def test_invariants_endpoint_validates_payload(client) -> None:
    response = client.post("/api/policy/invariants/evaluate", json={"intents_present": "definitely"})

    assert response.status_code == 422


def test_reports_are_kept_in_history_and_optionally_persisted(client, tmp_path) -> None:
    first = client.post("/api/maintenance/report", json=_feature(timestamp="2026-03-01T00:00:00Z"))
    second = client.post("/api/maintenance/report", json={**_feature(intents_present=False), "persist": True})

    assert first.json()["persisted"] is False
    assert first.json()["entry_hash"] is None
    assert second.json()["persisted"] is True
    assert second.json()["report"]["drift_score"]["score"] == 45

    listing = client.get("/api/maintenance/reports", params={"limit": 5}).json()
    assert [item["timestamp"] for item in listing["reports"]] == ["2026-03-01T00:00:00Z", "timestamp_missing"]
    assert listing["ledger"][0]["entry_hash"] == second.json()["entry_hash"]
    assert client.get("/api/health").json()["ledger"]["entries"] == 1


def test_report_history_respects_configured_limit(client, monkeypatch) -> None:
    monkeypatch.setenv("CIVKERNEL_REPORT_HISTORY_LIMIT", "2")
    for name in ("a", "b", "c"):
        client.post("/api/maintenance/report", json=_feature(feature_name=name))

    reports = client.get("/api/maintenance/reports").json()["reports"]
    assert [item["feature_name"] for item in reports] == ["b", "c"]


def test_preflight_fails_on_blank_feature_name(client) -> None:
    response = client.post("/api/maintenance/preflight", json=_feature(feature_name=""))

    body = response.json()
    assert body["status"] == "FAIL"
    assert body["terminal_outcome"] == "halted"
    assert body["outcome"]["type"] == "halted"
    assert "featureName is required" in body["reasons"][0]


def test_preflight_falls_back_to_safe_mode_on_unexpected_error(client, monkeypatch) -> None:
    def _boom(_payload):
        raise RuntimeError("evaluator offline")

    monkeypatch.setattr(maintenance, "evaluate_maintenance_preflight", _boom)

    response = client.post("/api/maintenance/preflight", json=_feature())

    assert response.status_code == 503
    detail = response.json()["detail"]
    assert detail["mode"] == "SAFE_MODE"
    assert detail["automation_allowed"] is False
    assert detail["reason"] == "maintenance_preflight_failed"


def test_report_persist_failure_falls_back_to_safe_mode(client, tmp_path) -> None:
    ledger_file = tmp_path / "ledger" / "reports.jsonl"
    ledger_file.parent.mkdir(parents=True, exist_ok=True)
    ledger_file.write_text("{not json\n", encoding="utf-8")

    response = client.post("/api/maintenance/report", json={**_feature(), "persist": True})

    assert response.status_code == 503
    detail = response.json()["detail"]
    assert detail["mode"] == "SAFE_MODE"
    assert detail["reason"] == "maintenance_report_persist_failed"


def test_preflight_persist_failure_falls_back_to_safe_mode(client, monkeypatch) -> None:
    def _disk_full(*_args, **_kwargs):
        raise OSError("no space left on device")

    monkeypatch.setattr(maintenance.ledger, "append_entry", _disk_full)

    response = client.post("/api/maintenance/preflight", json={**_feature(), "persist": True})

    assert response.status_code == 503
    assert response.json()["detail"]["reason"] == "maintenance_preflight_persist_failed"

def test_history_claims_append_and_query(client) -> None:
    created = client.post("/api/history/claims", json=_claim())

    assert created.status_code == 200
    assert created.json()["claim"]["claim_id"] == "claim-h1"
    assert created.json()["total_claims"] == 1

    refused = client.post("/api/history/query", json={"intent_id": "i-1"}).json()
    assert refused["ok"] is False
    assert refused["reason"] == "explicit_query_required"

    found = client.post("/api/history/query", json={"explicit_query": True, "intent_id": "i-1", "domain": "economics"}).json()
    assert [claim["claim_id"] for claim in found["claims"]] == ["claim-h1"]
    assert len(client.get("/api/history/claims").json()["claims"]) == 1


def test_prescriptive_history_claim_is_rejected_with_400(client) -> None:
    response = client.post("/api/history/claims", json=_claim(claim_text="You should optimize pricing"))

    assert response.status_code == 400
    assert response.json()["detail"]["status"] == "REJECTED"
    assert client.get("/api/history/claims").json()["claims"] == []


def test_history_usage_gate(client) -> None:
    response = client.post("/api/history/usage", json={"explicit_intent": True, "purpose": "context"})

    assert response.json() == {"ok": True, "reason": "context_allowed"}


def test_maintenance_rules_forbid_side_effects(client) -> None:
    rules = client.get("/api/maintenance/rules").json()

    assert rules["can_report"] is True
    assert rules["can_modify_data"] is False
    assert rules["can_override_humans"] is False
    assert rules["forbidden_optimizations"] == ["growth", "profit", "engagement"]
