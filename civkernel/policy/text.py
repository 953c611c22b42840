# SPDX-License-Identifier: Apache-2.0
"""Text normalization and prohibited-target matching shared by every policy check."""

from __future__ import annotations

import re
from typing import Iterable, List, Sequence, Tuple

_QUOTE_CHARS = re.compile(r"[\"'‘’“”]")
_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(value: object) -> str:
    """Lowercase, drop quotes, blank out punctuation and collapse whitespace.

    ``normalize_text(normalize_text(x)) == normalize_text(x)`` for every input.
    """
    text = "" if value is None else str(value)
    text = _QUOTE_CHARS.sub("", text.lower())
    text = _NON_ALNUM.sub(" ", text)
    return _WHITESPACE.sub(" ", text).strip()


def unique_normalized(values: Iterable[str]) -> Tuple[str, ...]:
    """Normalize, drop blanks and de-duplicate while keeping first-seen order."""
    seen: List[str] = []
    for value in values:
        normalized = normalize_text(value)
        if normalized and normalized not in seen:
            seen.append(normalized)
    return tuple(seen)


def matches_prohibited(target: str, prohibited: Sequence[str]) -> bool:
    normalized = normalize_text(target)
    if not normalized:
        return False
    return any(normalized == item or item in normalized for item in prohibited)


def find_prohibited_hits(targets: Iterable[str], prohibited: Sequence[str]) -> Tuple[str, ...]:
    """Return the original targets whose normalized form equals or contains a prohibited entry.

    ``prohibited`` must already be normalized (see :func:`unique_normalized`).
    """
    return tuple(target for target in targets if matches_prohibited(target, prohibited))


def quote_list(values: Iterable[str]) -> str:
    return ", ".join(f'"{value}"' for value in values)


__all__ = ["find_prohibited_hits", "matches_prohibited", "normalize_text", "quote_list", "unique_normalized"]
