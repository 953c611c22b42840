# SPDX-License-Identifier: Apache-2.0
"""UTC clock formatting helpers."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now_iso(now: datetime | None = None) -> str:
    """Return UTC RFC3339/Z timestamp.

    Optional ``now`` enables deterministic tests.
    """

    ts = now or datetime.now(timezone.utc)
    return ts.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


__all__ = ["utc_now_iso"]
