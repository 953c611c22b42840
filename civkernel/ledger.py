# SPDX-License-Identifier: Apache-2.0
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Hash-chained JSONL ledger for persisted maintenance reports.

Each line carries ``prev_entry_hash`` and ``entry_hash``; the hash covers the
canonical JSON of the entry (including ``prev_entry_hash``) without its own
``entry_hash``. Entries are only ever appended.
"""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from civkernel import ELEMENT_ID, metrics
from civkernel.config import load_settings
from civkernel.foundation import ZERO_HASH, canonical_json, chain_entry_hash, utc_now_iso
from civkernel.logger import get_logger

_APPEND_LOCK = threading.Lock()


class ReportLedgerIntegrityError(RuntimeError):
    """Raised when the report ledger hash chain does not verify."""


def ledger_path(path: Optional[Path | str] = None) -> Path:
    return Path(path) if path else load_settings().ledger_path


def _read_last_entry_hash(path: Path) -> str:
    if not path.exists():
        return ZERO_HASH
    last: Optional[str] = None
    with path.open("r", encoding="utf-8") as handle:
        for line in handle:
            if line.strip():
                last = line
    if not last:
        return ZERO_HASH
    try:
        obj = json.loads(last)
    except json.JSONDecodeError as exc:
        raise ReportLedgerIntegrityError(f"ledger_invalid_json:tail:{exc}") from exc
    return str(obj.get("entry_hash") or ZERO_HASH) if isinstance(obj, dict) else ZERO_HASH


def append_entry(entry: Mapping[str, Any], path: Optional[Path | str] = None) -> Dict[str, Any]:
    """Append ``entry`` to the chain and return it with ``prev_entry_hash``/``entry_hash`` set."""
    target = ledger_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    with _APPEND_LOCK:
        record = dict(entry)
        record.setdefault("recorded_at", utc_now_iso())
        record["prev_entry_hash"] = _read_last_entry_hash(target)
        record["entry_hash"] = chain_entry_hash(record)

        line = (canonical_json(record) + "\n").encode("utf-8")
        with target.open("ab") as handle:
            handle.write(line)
            handle.flush()
            os.fsync(handle.fileno())

    get_logger("ledger").audit(
        "ledger_append",
        actor=ELEMENT_ID,
        outcome="ok",
        entry_hash=record["entry_hash"],
        path=str(target),
    )
    metrics.log(event_type="report_ledger_append", payload={"entry_hash": record["entry_hash"]}, element_id=ELEMENT_ID)
    return record


def read_entries(limit: int = 50, path: Optional[Path | str] = None) -> List[Dict[str, Any]]:
    """Return the newest ``limit`` entries, oldest first. Unparseable lines are skipped."""
    target = ledger_path(path)
    if not target.exists():
        return []
    lines = [line for line in target.read_text(encoding="utf-8").splitlines() if line.strip()]
    if limit > 0:
        lines = lines[-limit:]
    entries: List[Dict[str, Any]] = []
    for line in lines:
        try:
            entries.append(json.loads(line))
        except json.JSONDecodeError:
            continue
    return entries


def verify_chain(path: Optional[Path | str] = None) -> int:
    """Walk the whole ledger and return the number of verified entries.

    Raises:
        ReportLedgerIntegrityError: on malformed lines or a broken hash link.
    """
    target = ledger_path(path)
    if not target.exists():
        return 0

    prev_hash = ZERO_HASH
    count = 0
    with target.open("r", encoding="utf-8") as handle:
        for line_no, line in enumerate(handle, start=1):
            text = line.strip()
            if not text:
                continue
            try:
                entry = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ReportLedgerIntegrityError(f"ledger_invalid_json:line{line_no}:{exc}") from exc
            if not isinstance(entry, dict):
                raise ReportLedgerIntegrityError(f"ledger_malformed_entry:line{line_no}")
            if entry.get("prev_entry_hash") != prev_hash:
                raise ReportLedgerIntegrityError(f"ledger_prev_hash_mismatch:line{line_no}")
            if entry.get("entry_hash") != chain_entry_hash(entry):
                raise ReportLedgerIntegrityError(f"ledger_hash_mismatch:line{line_no}")
            prev_hash = entry["entry_hash"]
            count += 1
    return count


__all__ = ["ReportLedgerIntegrityError", "append_entry", "ledger_path", "read_entries", "verify_chain"]
