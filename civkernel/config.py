# SPDX-License-Identifier: Apache-2.0
"""
Module: config
Purpose: Resolve environment-driven settings for the service, CLI and ledger layers.
Integration points:
  - Imports from: civkernel (ROOT_DIR)
  - Consumed by: civkernel.logger, civkernel.metrics, civkernel.ledger, app.api.maintenance, tools.policy_audit
  - Governance impact: none on verdicts; the evaluation engine never reads configuration
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from civkernel import ROOT_DIR

ENV_LOG_DIR = "CIVKERNEL_LOG_DIR"
ENV_METRICS_PATH = "CIVKERNEL_METRICS_PATH"
ENV_LEDGER_PATH = "CIVKERNEL_LEDGER_PATH"
ENV_REPORT_HISTORY_LIMIT = "CIVKERNEL_REPORT_HISTORY_LIMIT"
ENV_PERSIST_REPORTS = "CIVKERNEL_PERSIST_REPORTS"
ENV_LOG_MAX_BYTES = "CIVKERNEL_LOG_MAX_BYTES"
ENV_LOG_BACKUPS = "CIVKERNEL_LOG_BACKUPS"

DEFAULT_LOG_DIR = Path("data/logs")
DEFAULT_METRICS_PATH = ROOT_DIR / "reports" / "metrics.jsonl"
DEFAULT_LEDGER_PATH = ROOT_DIR / "data" / "ledger" / "maintenance_reports.jsonl"
DEFAULT_REPORT_HISTORY_LIMIT = 50
DEFAULT_LOG_MAX_BYTES = 5_242_880
DEFAULT_LOG_BACKUPS = 3


@dataclass(frozen=True)
class RuntimeSettings:
    log_dir: Path
    metrics_path: Path
    ledger_path: Path
    report_history_limit: int
    persist_reports: bool
    log_max_bytes: int = DEFAULT_LOG_MAX_BYTES
    log_backup_count: int = DEFAULT_LOG_BACKUPS


def is_truthy_env(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_positive_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except (AttributeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def load_settings(environ: Mapping[str, str] | None = None) -> RuntimeSettings:
    """Read settings from ``environ`` (defaults to ``os.environ``) at call time."""

    env = os.environ if environ is None else environ
    log_dir = env.get(ENV_LOG_DIR, "").strip()
    metrics_path = env.get(ENV_METRICS_PATH, "").strip()
    ledger_path = env.get(ENV_LEDGER_PATH, "").strip()
    return RuntimeSettings(
        log_dir=Path(log_dir) if log_dir else DEFAULT_LOG_DIR,
        metrics_path=Path(metrics_path) if metrics_path else DEFAULT_METRICS_PATH,
        ledger_path=Path(ledger_path) if ledger_path else DEFAULT_LEDGER_PATH,
        report_history_limit=_parse_positive_int(env.get(ENV_REPORT_HISTORY_LIMIT, ""), DEFAULT_REPORT_HISTORY_LIMIT),
        persist_reports=is_truthy_env(env.get(ENV_PERSIST_REPORTS, "")),
        log_max_bytes=_parse_positive_int(env.get(ENV_LOG_MAX_BYTES, ""), DEFAULT_LOG_MAX_BYTES),
        log_backup_count=_parse_positive_int(env.get(ENV_LOG_BACKUPS, ""), DEFAULT_LOG_BACKUPS),
    )


__all__ = [
    "DEFAULT_LEDGER_PATH",
    "DEFAULT_LOG_BACKUPS",
    "DEFAULT_LOG_MAX_BYTES",
    "DEFAULT_LOG_DIR",
    "DEFAULT_METRICS_PATH",
    "DEFAULT_REPORT_HISTORY_LIMIT",
    "ENV_LEDGER_PATH",
    "ENV_LOG_BACKUPS",
    "ENV_LOG_MAX_BYTES",
    "ENV_LOG_DIR",
    "ENV_METRICS_PATH",
    "ENV_PERSIST_REPORTS",
    "ENV_REPORT_HISTORY_LIMIT",
    "RuntimeSettings",
    "is_truthy_env",
    "load_settings",
]
