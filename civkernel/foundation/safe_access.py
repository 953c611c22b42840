# SPDX-License-Identifier: Apache-2.0
"""
Module: safe_access
Purpose: Provide deterministic null-safe coercion helpers for caller-supplied evaluation input.
Integration points:
  - Imports from: typing, math
  - Consumed by: civkernel.policy.*, civkernel.history.kernel
  - Governance impact: low; malformed input degrades to defaults instead of raising
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Tuple, Union

Number = Union[int, float]


def is_non_empty_str(val: Any) -> bool:
    return isinstance(val, str) and bool(val.strip())


def safe_str(val: Any, default: str = "") -> str:
    """Return the trimmed string value when non-blank, otherwise default."""
    if is_non_empty_str(val):
        return val.strip()
    return default


def safe_str_list(val: Any) -> Tuple[str, ...]:
    """Return trimmed non-blank strings from a list/tuple; anything else yields ``()``.

    Non-string items are dropped. A bare string is not treated as a sequence.
    """
    if not isinstance(val, (list, tuple)):
        return ()
    return tuple(item.strip() for item in val if isinstance(item, str) and item.strip())


def safe_bool(val: Any) -> bool:
    """Truthiness coercion; ``None`` and missing values are False."""
    return bool(val)


def strict_bool(val: Any) -> bool:
    """Only a literal ``True`` counts as set."""
    return val is True


def safe_count(val: Any) -> Number:
    """Coerce a count to a finite number, defaulting to 0.

    Booleans count as 0/1, numeric strings are parsed, and NaN/inf or
    unparsable values collapse to 0. Integral floats are returned as ``int``.
    """
    if val is None:
        return 0
    if isinstance(val, bool):
        return int(val)
    if isinstance(val, (int, float)):
        number: float = float(val)
    elif isinstance(val, str):
        try:
            number = float(val.strip())
        except ValueError:
            return 0
    else:
        return 0
    if not math.isfinite(number):
        return 0
    return int(number) if number.is_integer() else number


def safe_mapping(val: Any) -> Mapping[str, Any]:
    if isinstance(val, Mapping):
        return val
    return {}


__all__ = [
    "is_non_empty_str",
    "safe_bool",
    "safe_count",
    "safe_mapping",
    "safe_str",
    "safe_str_list",
    "strict_bool",
]
