# SPDX-License-Identifier: Apache-2.0
"""
Structured evaluation input shared by the policy engine, invariant evaluator,
report builder and maintenance preflight.

Callers pass plain mappings; coercion never raises. Missing strings become
empty, missing sequences become empty tuples and missing flags are False.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Tuple

from civkernel.foundation import safe_bool, safe_mapping, safe_str, safe_str_list, strict_bool

FLAG_FIELDS: Tuple[str, ...] = (
    "intents_present",
    "append_only_preserved",
    "requires_human_approval_for_r3",
    "mock_mode",
    "allow_intentless_in_mock",
    "central_control_detected",
    "authority_bypass_detected",
    "claims_without_evidence_detected",
    "evidence_missing",
)


@dataclass(frozen=True)
class EvaluationInput:
    feature_name: str = ""
    declared_optimization_targets: Tuple[str, ...] = ()
    intents_present: bool = False
    append_only_preserved: bool = False
    requires_human_approval_for_r3: bool = False
    mock_mode: bool = False
    allow_intentless_in_mock: bool = False
    central_control_detected: bool = False
    authority_bypass_detected: bool = False
    claims_without_evidence_detected: bool = False
    evidence_missing: bool = False
    timestamp: str = ""

    @classmethod
    def from_mapping(cls, raw: Any, *, strict_flags: bool = False) -> "EvaluationInput":
        """Coerce ``raw`` into an input record.

        With ``strict_flags`` only a literal ``True`` sets a flag; otherwise any
        truthy value does.
        """
        if isinstance(raw, EvaluationInput):
            return raw
        source = safe_mapping(raw)
        coerce: Callable[[Any], bool] = strict_bool if strict_flags else safe_bool
        flags = {name: coerce(source.get(name)) for name in FLAG_FIELDS}
        return cls(
            feature_name=safe_str(source.get("feature_name")),
            declared_optimization_targets=safe_str_list(source.get("declared_optimization_targets")),
            timestamp=safe_str(source.get("timestamp")),
            **flags,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "feature_name": self.feature_name,
            "declared_optimization_targets": list(self.declared_optimization_targets),
            "timestamp": self.timestamp,
        }
        for name in FLAG_FIELDS:
            payload[name] = getattr(self, name)
        return payload


def coerce_input(raw: Mapping[str, Any] | EvaluationInput | None, *, strict_flags: bool = False) -> EvaluationInput:
    return EvaluationInput.from_mapping(raw, strict_flags=strict_flags)


__all__ = ["EvaluationInput", "FLAG_FIELDS", "coerce_input"]
