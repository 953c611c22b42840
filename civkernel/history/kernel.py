# SPDX-License-Identifier: Apache-2.0
"""
Append-only ledger of descriptive historical claims.

Claims are context, never instructions: prescriptive wording and anything
touching a forbidden optimization target is rejected, every claim must be
independently sourced, and existing claims are never edited or removed.
A disagreement is recorded as a new claim that references the one it
challenges. Each append returns a new ``HistoryState``; a rejected claim
raises ``HistoryClaimError`` and leaves the caller's state untouched.
"""

from __future__ import annotations

import functools
import math
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from civkernel.foundation import is_non_empty_str, safe_mapping, safe_str
from civkernel.policy.constitution import CIV_CONSTITUTION
from civkernel.policy.invariants import REQUIRED_INVARIANTS
from civkernel.policy.text import normalize_text, unique_normalized

EVIDENCE_GRADES: Tuple[str, ...] = ("A", "B", "C", "D")
CONTROVERSY_COUNTER_SOURCE_THRESHOLD = 0.3

_LOGICAL_TIME = re.compile(r"^h(\d+)$")
_PRESCRIPTIVE = re.compile(r"\b(should|ought|recommend|recommended|recommendation|must|optimize|optimise)\b")

USAGE_PURPOSE_CONTEXT = "context"


class HistoryClaimError(ValueError):
    """Raised when a claim is rejected; the ledger is left unchanged."""


class HistoryDomain(str, Enum):
    ECONOMICS = "economics"
    GOVERNANCE = "governance"
    MEDICINE = "medicine"
    TECH = "tech"
    LABOR = "labor"
    SOCIAL = "social"


class SourceType(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"
    DATA = "data"


class AddedBy(str, Enum):
    SYSTEM = "system"
    CURATOR = "curator"


@dataclass(frozen=True)
class Source:
    author: str
    type: SourceType
    date: str

    def to_dict(self) -> Dict[str, str]:
        return {"author": self.author, "type": self.type.value, "date": self.date}


@dataclass(frozen=True)
class HistoryClaim:
    claim_id: str
    claim_text: str
    time_range: str
    geography: str
    domain: HistoryDomain
    sources: Tuple[Source, ...]
    counter_sources: Tuple[Source, ...]
    evidence_grade: str
    confidence_score: float
    controversy_score: float
    added_by: AddedBy
    added_at: str
    falsifiable_prompt: str
    challenge_of: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "claim_id": self.claim_id,
            "claim_text": self.claim_text,
            "time_range": self.time_range,
            "geography": self.geography,
            "domain": self.domain.value,
            "sources": [source.to_dict() for source in self.sources],
            "counter_sources": [source.to_dict() for source in self.counter_sources],
            "evidence_grade": self.evidence_grade,
            "confidence_score": self.confidence_score,
            "controversy_score": self.controversy_score,
            "added_by": self.added_by.value,
            "added_at": self.added_at,
            "falsifiable_prompt": self.falsifiable_prompt,
            "challenge_of": self.challenge_of,
        }


@dataclass(frozen=True)
class HistoryState:
    claims: Tuple[HistoryClaim, ...] = ()
    logical_clock: int = 0


@dataclass(frozen=True)
class HistoryQueryResult:
    ok: bool
    reason: str
    claims: Tuple[HistoryClaim, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "reason": self.reason, "claims": [claim.to_dict() for claim in self.claims]}


@dataclass(frozen=True)
class HistoryUsageDecision:
    ok: bool
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": self.ok, "reason": self.reason}


# -- coercion -----------------------------------------------------------------


def parse_logical_time(value: Any) -> Optional[int]:
    if not isinstance(value, str):
        return None
    match = _LOGICAL_TIME.match(value)
    return int(match.group(1)) if match else None


def _compare_logical_time(a: str, b: str) -> int:
    parsed_a = parse_logical_time(a)
    parsed_b = parse_logical_time(b)
    if parsed_a is not None and parsed_b is not None:
        return parsed_a - parsed_b
    return (str(a) > str(b)) - (str(a) < str(b))


def _enum_value(enum_cls: type[Enum], value: Any, label: str) -> Any:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise HistoryClaimError(f"Invalid {label}: {value}") from exc


def _normalize_domain(value: Any) -> HistoryDomain:
    return _enum_value(HistoryDomain, value, "history domain")


def _normalize_evidence_grade(value: Any) -> str:
    grade = value.strip().upper() if isinstance(value, str) else ""
    if grade not in EVIDENCE_GRADES:
        raise HistoryClaimError(f"Invalid evidence_grade: {value}")
    return grade


def _assert_write_access(added_by: Any, writer_role: Any) -> AddedBy:
    normalized = _enum_value(AddedBy, added_by, "added_by")
    if writer_role in (None, ""):
        return normalized
    role = _enum_value(AddedBy, writer_role, "added_by")
    if role is not normalized:
        raise HistoryClaimError("writer_role does not match added_by.")
    return normalized


def _validate_score(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise HistoryClaimError(f"{name} must be between 0 and 1.")
    try:
        numeric = float(value)
    except (TypeError, ValueError) as exc:
        raise HistoryClaimError(f"{name} must be between 0 and 1.") from exc
    if not math.isfinite(numeric) or numeric < 0 or numeric > 1:
        raise HistoryClaimError(f"{name} must be between 0 and 1.")
    return numeric


def contains_prescriptive_language(text: str) -> bool:
    normalized = normalize_text(text)
    return bool(normalized) and bool(_PRESCRIPTIVE.search(normalized))


def _normalize_source(raw: Any) -> Source:
    if isinstance(raw, Source):
        return raw
    source = safe_mapping(raw)
    author = safe_str(source.get("author"))
    source_type = _enum_value(SourceType, source.get("type"), "source type")
    date = safe_str(source.get("date"))
    if not author:
        raise HistoryClaimError("source.author is required.")
    if not date:
        raise HistoryClaimError("source.date is required.")
    return Source(author=author, type=source_type, date=date)


def _normalize_sources(raw: Any, label: str) -> Tuple[Source, ...]:
    if not isinstance(raw, (list, tuple)) or not raw:
        raise HistoryClaimError(f"{label} must include at least one source.")
    return tuple(_normalize_source(item) for item in raw)


def _validate_source_requirements(
    sources: Tuple[Source, ...],
    counter_sources: Tuple[Source, ...],
    controversy_score: float,
) -> None:
    primary = [source for source in sources if source.type in (SourceType.PRIMARY, SourceType.DATA)]
    secondary = [source for source in sources if source.type is SourceType.SECONDARY]

    if not primary:
        raise HistoryClaimError("At least one primary or data-based source is required.")
    if not secondary:
        raise HistoryClaimError("At least one independent secondary source is required.")

    primary_authors = {source.author for source in primary}
    if all(source.author in primary_authors for source in secondary):
        raise HistoryClaimError("Secondary source must be independent from primary/data authors.")

    if controversy_score > CONTROVERSY_COUNTER_SOURCE_THRESHOLD and not counter_sources:
        raise HistoryClaimError("counter_sources is required when controversy_score > 0.3.")


def forbidden_history_targets() -> Tuple[str, ...]:
    never_optimize = [target for invariant in REQUIRED_INVARIANTS for target in invariant.never_optimize_for]
    return unique_normalized((*CIV_CONSTITUTION.non_goals, *never_optimize))


def find_forbidden_claim_targets(claim_text: str) -> Tuple[str, ...]:
    normalized = normalize_text(claim_text)
    if not normalized:
        return ()
    return tuple(target for target in forbidden_history_targets() if target in normalized)


# -- ledger operations --------------------------------------------------------


def _restore_claim(raw: Any) -> HistoryClaim:
    """Rebuild a stored claim from its ``to_dict()`` form; other shapes are rejected."""
    if isinstance(raw, HistoryClaim):
        return raw
    if not isinstance(raw, Mapping):
        raise HistoryClaimError(f"Invalid stored claim: {type(raw).__name__}")
    claim_id = safe_str(raw.get("claim_id"))
    added_at = safe_str(raw.get("added_at"))
    if not claim_id or not added_at:
        raise HistoryClaimError("Stored claim requires claim_id and added_at.")
    counter_raw = raw.get("counter_sources")
    return HistoryClaim(
        claim_id=claim_id,
        claim_text=safe_str(raw.get("claim_text")),
        time_range=safe_str(raw.get("time_range")),
        geography=safe_str(raw.get("geography")),
        domain=_normalize_domain(raw.get("domain")),
        sources=_normalize_sources(raw.get("sources"), "sources"),
        counter_sources=tuple(_normalize_source(item) for item in counter_raw) if isinstance(counter_raw, (list, tuple)) else (),
        evidence_grade=_normalize_evidence_grade(raw.get("evidence_grade")),
        confidence_score=_validate_score(raw.get("confidence_score"), "confidence_score"),
        controversy_score=_validate_score(raw.get("controversy_score"), "controversy_score"),
        added_by=_enum_value(AddedBy, raw.get("added_by"), "added_by"),
        added_at=added_at,
        falsifiable_prompt=safe_str(raw.get("falsifiable_prompt")),
        challenge_of=safe_str(raw.get("challenge_of")) or None,
    )


def create_history_state(seed: HistoryState | Mapping[str, Any] | None = None) -> HistoryState:
    if isinstance(seed, HistoryState):
        return seed
    source = safe_mapping(seed)
    claims = source.get("claims")
    clock = source.get("logical_clock")
    return HistoryState(
        claims=tuple(_restore_claim(claim) for claim in claims) if isinstance(claims, (list, tuple)) else (),
        logical_clock=clock if isinstance(clock, int) and not isinstance(clock, bool) else 0,
    )


def advance_history_clock(state: HistoryState) -> Tuple[HistoryState, str]:
    next_value = max(0, state.logical_clock) + 1
    return replace(state, logical_clock=next_value), f"h{next_value}"


def _ensure_logical_clock(state: HistoryState, added_at: str) -> HistoryState:
    parsed = parse_logical_time(added_at)
    if parsed is None or parsed <= state.logical_clock:
        return state
    return replace(state, logical_clock=parsed)


def append_history_claim(
    state: HistoryState | Mapping[str, Any] | None,
    claim_input: Mapping[str, Any],
) -> Tuple[HistoryState, HistoryClaim]:
    """Validate ``claim_input`` and return ``(new_state, claim)``.

    Raises:
        HistoryClaimError: for the first violated precondition. Nothing is
            appended on failure.
    """
    raw = safe_mapping(claim_input)

    claim_text = safe_str(raw.get("claim_text"))
    if not claim_text:
        raise HistoryClaimError("claim_text is required.")
    if contains_prescriptive_language(claim_text):
        raise HistoryClaimError("claim_text must be descriptive only (no prescriptive language).")
    if find_forbidden_claim_targets(claim_text):
        raise HistoryClaimError("claim_text cannot override Constitution or Invariants.")

    falsifiable = safe_str(raw.get("falsifiable_prompt"))
    if not falsifiable:
        raise HistoryClaimError("falsifiable_prompt is required.")

    evidence_grade = _normalize_evidence_grade(raw.get("evidence_grade"))
    confidence_score = _validate_score(raw.get("confidence_score"), "confidence_score")
    controversy_score = _validate_score(raw.get("controversy_score"), "controversy_score")

    added_by = _assert_write_access(raw.get("added_by"), raw.get("writer_role"))
    time_range = safe_str(raw.get("time_range"))
    geography = safe_str(raw.get("geography"))
    if not time_range:
        raise HistoryClaimError("time_range is required.")
    if not geography:
        raise HistoryClaimError("geography is required.")

    sources = _normalize_sources(raw.get("sources"), "sources")
    counter_raw = raw.get("counter_sources")
    counter_sources = tuple(_normalize_source(item) for item in counter_raw) if isinstance(counter_raw, (list, tuple)) else ()
    _validate_source_requirements(sources, counter_sources, controversy_score)

    domain = _normalize_domain(raw.get("domain"))

    next_state = create_history_state(state)
    added_at = safe_str(raw.get("added_at"))
    if added_at:
        next_state = _ensure_logical_clock(next_state, added_at)
    else:
        next_state, added_at = advance_history_clock(next_state)

    claim = HistoryClaim(
        claim_id=safe_str(raw.get("claim_id"), f"claim-{added_at}"),
        claim_text=claim_text,
        time_range=time_range,
        geography=geography,
        domain=domain,
        sources=sources,
        counter_sources=counter_sources,
        evidence_grade=evidence_grade,
        confidence_score=confidence_score,
        controversy_score=controversy_score,
        added_by=added_by,
        added_at=added_at,
        falsifiable_prompt=falsifiable,
        challenge_of=safe_str(raw.get("challenge_of")) or None,
    )
    return replace(next_state, claims=(*next_state.claims, claim)), claim


def append_history_challenge(
    state: HistoryState | Mapping[str, Any] | None,
    claim_input: Mapping[str, Any],
) -> Tuple[HistoryState, HistoryClaim]:
    if not is_non_empty_str(safe_mapping(claim_input).get("challenge_of")):
        raise HistoryClaimError("challenge_of is required for challenge claims.")
    return append_history_claim(state, claim_input)


def query_history_claims(state: HistoryState | Mapping[str, Any] | None, request: Mapping[str, Any]) -> HistoryQueryResult:
    """Read claims for an explicit, intent-bound query. Implicit reads are refused."""
    raw = safe_mapping(request)
    if raw.get("explicit_query") is not True:
        return HistoryQueryResult(ok=False, reason="explicit_query_required", claims=())
    if not safe_str(raw.get("intent_id")):
        return HistoryQueryResult(ok=False, reason="intent_required", claims=())

    domain = _normalize_domain(raw.get("domain")) if raw.get("domain") else None
    geography = safe_str(raw.get("geography")) or None
    time_range = safe_str(raw.get("time_range")) or None

    matches: List[HistoryClaim] = []
    for claim in create_history_state(state).claims:
        if domain is not None and claim.domain is not domain:
            continue
        if geography is not None and claim.geography != geography:
            continue
        if time_range is not None and claim.time_range != time_range:
            continue
        matches.append(claim)
    return HistoryQueryResult(ok=True, reason="explicit_query", claims=tuple(matches))


def evaluate_history_usage(request: Mapping[str, Any] | None) -> HistoryUsageDecision:
    """History may inform a decision as context only, and only on explicit intent."""
    raw = safe_mapping(request)
    if raw.get("explicit_intent") is not True:
        return HistoryUsageDecision(ok=False, reason="explicit_intent_required")
    if safe_str(raw.get("purpose")) != USAGE_PURPOSE_CONTEXT:
        return HistoryUsageDecision(ok=False, reason="context_only")
    if raw.get("overrides_constitution") is True or raw.get("overrides_invariants") is True:
        return HistoryUsageDecision(ok=False, reason="cannot_override_constitution_or_invariants")
    return HistoryUsageDecision(ok=True, reason="context_allowed")


def get_history_ledger(claims: Iterable[HistoryClaim | Mapping[str, Any]] | None) -> Tuple[HistoryClaim, ...]:
    """Return claims ordered by logical time (``h<N>``), falling back to text order."""
    ordered = sorted(
        (_restore_claim(claim) for claim in claims or ()),
        key=functools.cmp_to_key(lambda a, b: _compare_logical_time(a.added_at, b.added_at)),
    )
    return tuple(ordered)


__all__ = [
    "AddedBy",
    "CONTROVERSY_COUNTER_SOURCE_THRESHOLD",
    "EVIDENCE_GRADES",
    "HistoryClaim",
    "HistoryClaimError",
    "HistoryDomain",
    "HistoryQueryResult",
    "HistoryState",
    "HistoryUsageDecision",
    "Source",
    "SourceType",
    "advance_history_clock",
    "append_history_challenge",
    "append_history_claim",
    "contains_prescriptive_language",
    "create_history_state",
    "evaluate_history_usage",
    "find_forbidden_claim_targets",
    "forbidden_history_targets",
    "get_history_ledger",
    "parse_logical_time",
    "query_history_claims",
]
