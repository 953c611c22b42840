# SPDX-License-Identifier: Apache-2.0
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _isolated_runtime_paths(tmp_path, monkeypatch):
    """Keep logs, metrics and the report ledger inside the test's tmp dir."""
    monkeypatch.setenv("CIVKERNEL_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setenv("CIVKERNEL_METRICS_PATH", str(tmp_path / "metrics.jsonl"))
    monkeypatch.setenv("CIVKERNEL_LEDGER_PATH", str(tmp_path / "ledger" / "reports.jsonl"))
    monkeypatch.delenv("CIVKERNEL_PERSIST_REPORTS", raising=False)
    monkeypatch.delenv("CIVKERNEL_REPORT_HISTORY_LIMIT", raising=False)
    yield
