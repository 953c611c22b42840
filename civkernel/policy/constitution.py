# SPDX-License-Identifier: Apache-2.0
"""
Constitution declaring the steward system's purpose and prohibited optimization targets.

The constitution is a process-wide constant. It is loaded once at import time
and never mutated; every evaluation path reads the same instance.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple

CONSTITUTION_VERSION = "v1"


@dataclass(frozen=True)
class Constitution:
    version: str
    purpose: str
    non_goals: Tuple[str, ...]
    clauses: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "purpose": self.purpose,
            "non_goals": list(self.non_goals),
            "clauses": list(self.clauses),
        }


CIV_CONSTITUTION = Constitution(
    version=CONSTITUTION_VERSION,
    purpose=(
        "Help a human operator decide and execute safely without sacrificing trust, "
        "autonomy, or long-term resilience."
    ),
    non_goals=(
        "engagement",
        "manipulate emotions",
        "centralize power",
        "growth at all costs",
        "coercive lock-in",
        "deception",
    ),
    clauses=(
        "Human-in-the-loop: the system advises; humans declare intent and accept accountability.",
        "Exit/fork rights: the operator can stop, export, fork, and rollback without coercion.",
        "Failure preference: degrade safely; block when intent/constraints are missing rather than guessing.",
    ),
)


__all__ = ["CONSTITUTION_VERSION", "CIV_CONSTITUTION", "Constitution"]
