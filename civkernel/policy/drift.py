# SPDX-License-Identifier: Apache-2.0
"""
Drift score calculator.

The score is a 100-point health value. Each factor applies a step penalty:
any count above zero costs the factor's full weight, so every score drop
traces back to a named cause.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Tuple, Union

from civkernel.foundation import safe_count, safe_mapping

Number = Union[int, float]

MAX_SCORE = 100
MIN_SCORE = 0


@dataclass(frozen=True)
class DriftFactor:
    id: str
    label: str
    weight: int
    input_key: str
    flagged_text: str
    clean_text: str


DRIFT_FACTORS: Tuple[DriftFactor, ...] = (
    DriftFactor(
        id="drift::invariants",
        label="Invariant violations",
        weight=35,
        input_key="invariant_violations_count",
        flagged_text="Detected {count} invariant violation(s).",
        clean_text="No invariant violations detected (count {count}).",
    ),
    DriftFactor(
        id="drift::prohibited-targets",
        label="Prohibited optimization targets",
        weight=25,
        input_key="prohibited_target_hits_count",
        flagged_text="Detected {count} prohibited target hit(s).",
        clean_text="No prohibited optimization targets detected (count {count}).",
    ),
    DriftFactor(
        id="drift::intent",
        label="Intent bindings",
        weight=20,
        input_key="missing_intent_count",
        flagged_text="Intent binding missing (count {count}).",
        clean_text="Intent binding present (count {count}).",
    ),
    DriftFactor(
        id="drift::append-only",
        label="Append-only guarantees",
        weight=15,
        input_key="append_only_breach_count",
        flagged_text="Append-only breach detected (count {count}).",
        clean_text="Append-only history preserved (count {count}).",
    ),
    DriftFactor(
        id="drift::human-approval",
        label="Human approval wiring",
        weight=5,
        input_key="missing_approval_count",
        flagged_text="Human approval wiring missing (count {count}).",
        clean_text="Human approval wiring present (count {count}).",
    ),
)


@dataclass(frozen=True)
class DriftLineItem:
    id: str
    label: str
    weight: int
    count: Number
    penalty: int
    explanation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "weight": self.weight,
            "count": self.count,
            "penalty": self.penalty,
            "explanation": self.explanation,
        }


@dataclass(frozen=True)
class DriftScore:
    score: int
    lines: Tuple[DriftLineItem, ...]

    @property
    def flagged(self) -> Tuple[DriftLineItem, ...]:
        return tuple(line for line in self.lines if line.penalty > 0)

    def to_dict(self) -> Dict[str, Any]:
        return {"score": self.score, "lines": [line.to_dict() for line in self.lines]}


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def _line_item(factor: DriftFactor, count: Number) -> DriftLineItem:
    flagged = count > 0
    template = factor.flagged_text if flagged else factor.clean_text
    return DriftLineItem(
        id=factor.id,
        label=factor.label,
        weight=factor.weight,
        count=count,
        penalty=factor.weight if flagged else 0,
        explanation=template.format(count=count),
    )


def compute_drift_score(raw: Mapping[str, Any] | None) -> DriftScore:
    """Score drift from violation counts; missing or malformed counts are treated as 0."""
    counts = safe_mapping(raw)
    lines = tuple(_line_item(factor, safe_count(counts.get(factor.input_key))) for factor in DRIFT_FACTORS)
    total_penalty = sum(line.penalty for line in lines)
    return DriftScore(score=_clamp(MAX_SCORE - total_penalty, MIN_SCORE, MAX_SCORE), lines=lines)


__all__ = [
    "DRIFT_FACTORS",
    "DriftFactor",
    "DriftLineItem",
    "DriftScore",
    "MAX_SCORE",
    "MIN_SCORE",
    "compute_drift_score",
]
