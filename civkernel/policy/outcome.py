# SPDX-License-Identifier: Apache-2.0
"""
Terminal decision outcomes and the adapter that upgrades legacy outcome shapes.

Older callers still emit ``DONE``/``BLOCKED``/``RETRY`` style outcomes;
``ensure_outcome`` is the single boundary where those are mapped onto the
current vocabulary. Anything unrecognized halts.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from civkernel.foundation import is_non_empty_str

OUTCOME_EXECUTED = "executed"
OUTCOME_DEFERRED = "deferred"
OUTCOME_DECLINED = "declined"
OUTCOME_TRANSFORMED = "transformed"
OUTCOME_EXPIRED = "expired"
OUTCOME_HALTED = "halted"

OUTCOME_TYPES: Tuple[str, ...] = (
    OUTCOME_EXECUTED,
    OUTCOME_DEFERRED,
    OUTCOME_DECLINED,
    OUTCOME_TRANSFORMED,
    OUTCOME_EXPIRED,
    OUTCOME_HALTED,
)

LEGACY_OUTCOME_MAP: Mapping[str, str] = MappingProxyType(
    {
        "DONE": OUTCOME_EXECUTED,
        "BLOCKED": OUTCOME_HALTED,
        "DEFERRED": OUTCOME_DEFERRED,
        "RETRY": OUTCOME_DEFERRED,
        "ESCALATE": OUTCOME_HALTED,
        "CANCELLED": OUTCOME_DECLINED,
    }
)

NEXT_ACTION_KINDS: Tuple[str, ...] = ("ASK_USER", "REQUEST_APPROVAL", "RUN_NEXT", "SCHEDULE")

INVALID_OUTCOME = "INVALID_OUTCOME"
MISSING_FIELDS = "MISSING_FIELDS"


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class NextAction:
    kind: str
    payload: Any = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "payload", _freeze(self.payload))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"kind": self.kind}
        if self.payload is not None:
            data["payload"] = _thaw(self.payload)
        return data


@dataclass(frozen=True)
class DecisionOutcome:
    type: str
    summary: str
    details: Optional[Mapping[str, Any]] = None
    next_action: Optional[NextAction] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"type": self.type, "summary": self.summary}
        if self.details:
            data["details"] = _thaw(self.details)
        if self.next_action is not None:
            data["next_action"] = self.next_action.to_dict()
        return data


def _build(
    outcome_type: str,
    summary: str,
    details: Optional[Mapping[str, Any]] = None,
    next_action: Optional[NextAction] = None,
) -> DecisionOutcome:
    trimmed = summary.strip() if isinstance(summary, str) else ""
    return DecisionOutcome(
        type=outcome_type,
        summary=trimmed or outcome_type,
        details=_freeze(details) if details else None,
        next_action=next_action,
    )


def executed(summary: str, details: Optional[Mapping[str, Any]] = None, next_action: Optional[NextAction] = None) -> DecisionOutcome:
    return _build(OUTCOME_EXECUTED, summary, details, next_action)


def deferred(summary: str, details: Optional[Mapping[str, Any]] = None, next_action: Optional[NextAction] = None) -> DecisionOutcome:
    return _build(OUTCOME_DEFERRED, summary, details, next_action)


def declined(summary: str, details: Optional[Mapping[str, Any]] = None, next_action: Optional[NextAction] = None) -> DecisionOutcome:
    return _build(OUTCOME_DECLINED, summary, details, next_action)


def transformed(summary: str, details: Optional[Mapping[str, Any]] = None, next_action: Optional[NextAction] = None) -> DecisionOutcome:
    return _build(OUTCOME_TRANSFORMED, summary, details, next_action)


def expired(summary: str, details: Optional[Mapping[str, Any]] = None, next_action: Optional[NextAction] = None) -> DecisionOutcome:
    return _build(OUTCOME_EXPIRED, summary, details, next_action)


def halted(summary: str, details: Optional[Mapping[str, Any]] = None, next_action: Optional[NextAction] = None) -> DecisionOutcome:
    return _build(OUTCOME_HALTED, summary, details, next_action)


def summarize_outcome(outcome: DecisionOutcome) -> str:
    if outcome.type not in OUTCOME_TYPES:
        raise ValueError(f"unhandled_outcome_type:{outcome.type}")
    return outcome.summary


def _describe_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def _coerce_next_action(raw: Any) -> Optional[NextAction]:
    if isinstance(raw, NextAction):
        return raw if raw.kind in NEXT_ACTION_KINDS else None
    if isinstance(raw, Mapping) and raw.get("kind") in NEXT_ACTION_KINDS:
        return NextAction(kind=str(raw["kind"]), payload=raw.get("payload"))
    return None


def _is_decision_outcome(value: Any) -> bool:
    if isinstance(value, DecisionOutcome):
        candidate_type, summary, details, next_action = value.type, value.summary, value.details, value.next_action
    elif isinstance(value, Mapping):
        candidate_type = value.get("type")
        summary = value.get("summary")
        details = value.get("details")
        next_action = value.get("next_action", value.get("nextAction"))
    else:
        return False
    if candidate_type not in OUTCOME_TYPES or not is_non_empty_str(summary):
        return False
    if details is not None and not isinstance(details, Mapping):
        return False
    if next_action is not None and _coerce_next_action(next_action) is None:
        return False
    return True


def _normalize_legacy(value: Any) -> Optional[DecisionOutcome]:
    if not isinstance(value, Mapping):
        return None
    mapped = LEGACY_OUTCOME_MAP.get(str(value.get("type") or ""))
    if mapped is None:
        return None
    summary = value.get("summary")
    details = value.get("details")
    return _build(
        mapped,
        summary if is_non_empty_str(summary) else mapped,
        details if isinstance(details, Mapping) else None,
        _coerce_next_action(value.get("next_action", value.get("nextAction"))),
    )


def ensure_outcome(value: Any, fallback_summary: str) -> DecisionOutcome:
    """Return a valid outcome for ``value``: as-is, upgraded from a legacy shape, or halted."""
    if _is_decision_outcome(value):
        if isinstance(value, DecisionOutcome):
            return value
        return _build(
            value["type"],
            value["summary"],
            value.get("details"),
            _coerce_next_action(value.get("next_action", value.get("nextAction"))),
        )
    legacy = _normalize_legacy(value)
    if legacy is not None:
        return legacy
    return halted(
        fallback_summary or INVALID_OUTCOME,
        {
            "received_type": _describe_type(value),
            "received_keys": sorted(str(key) for key in value) if isinstance(value, Mapping) else [],
        },
    )


def require_fields(value: Any, fields: Sequence[str]) -> Tuple[bool, Optional[DecisionOutcome]]:
    """Check that ``value`` carries every field; a miss yields ``(False, halted(MISSING_FIELDS))``."""
    if not isinstance(value, Mapping):
        return False, halted(MISSING_FIELDS, {"missing": list(fields), "received_type": _describe_type(value)})
    missing = [name for name in fields if value.get(name) is None]
    if missing:
        return False, halted(MISSING_FIELDS, {"missing": missing})
    return True, None


__all__ = [
    "DecisionOutcome",
    "INVALID_OUTCOME",
    "LEGACY_OUTCOME_MAP",
    "MISSING_FIELDS",
    "NEXT_ACTION_KINDS",
    "NextAction",
    "OUTCOME_DECLINED",
    "OUTCOME_DEFERRED",
    "OUTCOME_EXECUTED",
    "OUTCOME_EXPIRED",
    "OUTCOME_HALTED",
    "OUTCOME_TRANSFORMED",
    "OUTCOME_TYPES",
    "declined",
    "deferred",
    "ensure_outcome",
    "executed",
    "expired",
    "halted",
    "require_fields",
    "summarize_outcome",
    "transformed",
]
