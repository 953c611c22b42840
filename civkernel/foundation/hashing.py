# SPDX-License-Identifier: Apache-2.0
"""SHA-256 helpers for the report ledger hash chain."""

from __future__ import annotations

from hashlib import sha256
from typing import Any, Mapping

from civkernel.foundation.canonical import canonical_json_bytes

ZERO_HASH = "0" * 64
ENTRY_HASH_FIELD = "entry_hash"


def sha256_digest(payload: Any) -> str:
    """Hex digest of raw bytes, of UTF-8 text, or of the canonical JSON of anything else."""
    if isinstance(payload, (bytes, bytearray)):
        return sha256(bytes(payload)).hexdigest()
    if isinstance(payload, str):
        return sha256(payload.encode("utf-8")).hexdigest()
    return sha256(canonical_json_bytes(payload)).hexdigest()


def chain_entry_hash(entry: Mapping[str, Any], hash_field: str = ENTRY_HASH_FIELD) -> str:
    """Digest of ``entry`` without its own hash field; the previous link is part of the body."""
    return sha256_digest({key: value for key, value in entry.items() if key != hash_field})


__all__ = ["ENTRY_HASH_FIELD", "ZERO_HASH", "chain_entry_hash", "sha256_digest"]
