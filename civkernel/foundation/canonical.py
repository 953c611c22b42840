# SPDX-License-Identifier: Apache-2.0
"""Canonical JSON for ledger hashing and CLI output.

Value types are serialized through their ``to_dict()``; enums through their
value. Tuples and lists both become arrays, so a frozen result and its
dict form hash identically.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


def to_jsonable(value: Any) -> Any:
    if hasattr(value, "to_dict") and callable(value.to_dict):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    raise TypeError(f"not_json_serializable:{type(value).__name__}")


def canonical_json(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"), default=to_jsonable)


def canonical_json_bytes(payload: Any) -> bytes:
    return canonical_json(payload).encode("utf-8")


__all__ = ["canonical_json", "canonical_json_bytes", "to_jsonable"]
