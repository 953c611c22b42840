# SPDX-License-Identifier: Apache-2.0
"""
Registry of the permanent behavioral invariants checked by the maintenance bot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

INVARIANT_NO_CENTRAL_CONTROL = "no_central_control"
INVARIANT_INTENT_BEFORE_ACTION = "intent_before_action"
INVARIANT_AUTHORITY_DECAYS = "authority_decays_without_contribution"
INVARIANT_KNOWLEDGE_OVER_POSITION = "knowledge_over_position"


@dataclass(frozen=True)
class Invariant:
    id: str
    title: str
    description: str
    never_optimize_for: Tuple[str, ...]
    violation_signals: Tuple[str, ...]
    enforcement: str
    safe_failure: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "never_optimize_for": list(self.never_optimize_for),
            "violation_signals": list(self.violation_signals),
            "enforcement": self.enforcement,
            "safe_failure": self.safe_failure,
        }


REQUIRED_INVARIANTS: Tuple[Invariant, ...] = (
    Invariant(
        id=INVARIANT_NO_CENTRAL_CONTROL,
        title="No Central Control",
        description="The system must not optimize for centralizing power or creating dependency loops.",
        never_optimize_for=("centralize power", "single-owner capture", "forced dependency"),
        violation_signals=("centralized control path", "operator cannot exit", "coercive gate"),
        enforcement="Block shipping if changes explicitly optimize for central control or lock-in.",
        safe_failure="Degrade to read-only and require explicit human override with rationale.",
    ),
    Invariant(
        id=INVARIANT_INTENT_BEFORE_ACTION,
        title="Intent Before Action",
        description="Execution and optimization must be justified by declared human intent.",
        never_optimize_for=("automation without intent", "silent execution", "untraceable actions"),
        violation_signals=("missing intent envelope", "action without reason", "unlogged decision"),
        enforcement="Block if intent is missing (except explicit mock allowances).",
        safe_failure="Stop and ask for intent rather than guessing.",
    ),
    Invariant(
        id=INVARIANT_AUTHORITY_DECAYS,
        title="Authority Decays Without Contribution",
        description="Authority is earned through contribution and accountability, not position or proximity.",
        never_optimize_for=("rank/position capture", "credentialism without evidence"),
        violation_signals=("position-based bypass", "unreviewed authority escalation"),
        enforcement="Warn when human-approval plumbing is missing; require review for escalations.",
        safe_failure="Treat escalations as advisory until a human approves.",
    ),
    Invariant(
        id=INVARIANT_KNOWLEDGE_OVER_POSITION,
        title="Knowledge Over Position",
        description="Prefer evidence and verifiable knowledge over hierarchy or narrative.",
        never_optimize_for=("narrative laundering", "status games", "unverifiable claims"),
        violation_signals=("claims without evidence", "policy bypass justified by authority"),
        enforcement="Reject prohibited targets; encourage audit trails and evidence capture.",
        safe_failure="Surface uncertainty and request verification steps.",
    ),
)


def required_invariant_ids() -> Tuple[str, ...]:
    return tuple(invariant.id for invariant in REQUIRED_INVARIANTS)


def get_invariant(invariant_id: str) -> Optional[Invariant]:
    for invariant in REQUIRED_INVARIANTS:
        if invariant.id == invariant_id:
            return invariant
    return None


__all__ = [
    "INVARIANT_AUTHORITY_DECAYS",
    "INVARIANT_INTENT_BEFORE_ACTION",
    "INVARIANT_KNOWLEDGE_OVER_POSITION",
    "INVARIANT_NO_CENTRAL_CONTROL",
    "Invariant",
    "REQUIRED_INVARIANTS",
    "get_invariant",
    "required_invariant_ids",
]
