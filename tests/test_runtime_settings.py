# SPDX-License-Identifier: Apache-2.0

import json
from pathlib import Path

from civkernel import metrics
from civkernel.config import DEFAULT_REPORT_HISTORY_LIMIT, load_settings
from civkernel.logger import AUDIT_LEVEL, get_logger


def test_settings_read_environment_at_call_time(tmp_path) -> None:
    settings = load_settings(
        {
            "CIVKERNEL_LOG_DIR": str(tmp_path / "l"),
            "CIVKERNEL_REPORT_HISTORY_LIMIT": "7",
            "CIVKERNEL_PERSIST_REPORTS": "Yes",
        }
    )

    assert settings.log_dir == tmp_path / "l"
    assert settings.report_history_limit == 7
    assert settings.persist_reports is True


def test_invalid_settings_fall_back_to_defaults() -> None:
    settings = load_settings({"CIVKERNEL_REPORT_HISTORY_LIMIT": "-3", "CIVKERNEL_PERSIST_REPORTS": "maybe"})

    assert settings.report_history_limit == DEFAULT_REPORT_HISTORY_LIMIT
    assert settings.persist_reports is False
    assert settings.log_dir == Path("data/logs")
    assert settings.log_max_bytes == 5_242_880


def test_metrics_log_and_tail(tmp_path) -> None:
    metrics.log("policy_evaluated", {"ok": True})
    metrics.log("maintenance_preflight", {"status": "FAIL"}, level="WARNING")

    entries = metrics.tail(limit=1)
    assert entries[0]["event"] == "maintenance_preflight"
    assert entries[0]["level"] == "WARNING"
    assert metrics.metrics_path() == tmp_path / "metrics.jsonl"


def test_json_logger_writes_structured_audit_lines(tmp_path) -> None:
    log_file = tmp_path / "custom" / "audit.jsonl"
    logger = get_logger("test-audit", log_file=log_file)

    logger.audit(
        "maintenance_preflight",
        actor="Steward",
        outcome="FAIL",
        api_token="abc",
        request={"feature_name": "x", "client_secret": "s"},
    )
    logger.handler.flush()

    record = json.loads(log_file.read_text(encoding="utf-8").splitlines()[-1])
    assert record["lvl"] == "AUDIT"
    assert record["el"] == "Steward"
    assert record["cmp"] == "test-audit"
    assert record["ctx"]["outcome"] == "FAIL"
    assert record["ctx"]["api_token"] == "<redacted>"
    assert record["ctx"]["request"] == {"feature_name": "x", "client_secret": "<redacted>"}
    assert AUDIT_LEVEL == 25


def test_bound_logger_carries_request_context(tmp_path) -> None:
    logger = get_logger("bound").bind(feature_name="checkout")

    logger.info("policy_evaluated", ok=True)
    logger.handler.flush()

    assert logger.log_path == tmp_path / "logs" / "bound.jsonl"
    record = json.loads(logger.log_path.read_text(encoding="utf-8").splitlines()[-1])
    assert record["ctx"] == {"feature_name": "checkout", "ok": True}


def test_logger_cache_follows_log_dir(tmp_path, monkeypatch) -> None:
    first = get_logger("moving")
    monkeypatch.setenv("CIVKERNEL_LOG_DIR", str(tmp_path / "elsewhere"))
    second = get_logger("moving")

    assert first is not second
    assert second.log_path.parent == tmp_path / "elsewhere"
    assert get_logger("moving") is second
