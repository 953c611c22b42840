# SPDX-License-Identifier: Apache-2.0

import io
import json

from tools.policy_audit import main


def _write(tmp_path, payload) -> str:
    path = tmp_path / "payload.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_preflight_failure_exits_non_zero(tmp_path, capsys) -> None:
    code = main(["preflight", "--input", _write(tmp_path, {"feature_name": ""})])

    output = json.loads(capsys.readouterr().out)
    assert code == 1
    assert output["status"] == "FAIL"
    assert output["terminal_outcome"] == "halted"


def test_preflight_pass_reads_stdin(capsys) -> None:
    payload = {
        "feature_name": "csv-export",
        "intents_present": True,
        "append_only_preserved": True,
        "requires_human_approval_for_r3": True,
    }

    code = main(["preflight"], stdin=io.StringIO(json.dumps(payload)))

    assert code == 0
    assert json.loads(capsys.readouterr().out)["status"] == "PASS"


def test_report_can_be_persisted_and_verified(tmp_path, capsys) -> None:
    payload_path = _write(tmp_path, {"feature_name": "checkout", "intents_present": True, "append_only_preserved": True})

    assert main(["report", "--input", payload_path, "--persist"]) == 0
    report = json.loads(capsys.readouterr().out)
    assert report["drift_score"]["score"] == 95

    assert main(["verify-ledger"]) == 0
    assert json.loads(capsys.readouterr().out) == {"entries": 1, "ok": True}


def test_drift_output_is_canonical_json(tmp_path, capsys) -> None:
    assert main(["drift", "--input", _write(tmp_path, {"append_only_breach_count": 1})]) == 0

    out = capsys.readouterr().out.strip()
    assert out.startswith('{"lines":[')
    assert json.loads(out)["score"] == 85


def test_non_object_payload_is_rejected(tmp_path, capsys) -> None:
    assert main(["drift", "--input", _write(tmp_path, [1, 2])]) == 2
    assert "payload_must_be_object" in capsys.readouterr().err


def test_successful_run_writes_audit_record(tmp_path, capsys) -> None:
    assert main(["drift"], stdin=io.StringIO('{"invariant_violations_count": 1}')) == 0
    assert json.loads(capsys.readouterr().out)["score"] == 65

    records = [json.loads(line) for line in (tmp_path / "logs" / "cli.jsonl").read_text(encoding="utf-8").splitlines()]
    audit = records[-1]
    assert audit["lvl"] == "AUDIT"
    assert audit["ctx"]["action"] == "policy_audit"
    assert audit["ctx"]["command"] == "drift"
    assert audit["ctx"]["outcome"] == "ok"
