# SPDX-License-Identifier: Apache-2.0
"""Capability envelope and forbidden optimization targets of the maintenance bot."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

from civkernel.policy.constitution import CIV_CONSTITUTION
from civkernel.policy.text import find_prohibited_hits, unique_normalized

MAINTENANCE_FORBIDDEN_OPTIMIZATION_TARGETS: Tuple[str, ...] = ("growth", "profit", "engagement")


@dataclass(frozen=True)
class MaintenanceBotRules:
    can_observe: bool
    can_evaluate: bool
    can_report: bool
    can_modify_data: bool
    can_trigger_actions: bool
    can_override_humans: bool
    forbidden_optimizations: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "can_observe": self.can_observe,
            "can_evaluate": self.can_evaluate,
            "can_report": self.can_report,
            "can_modify_data": self.can_modify_data,
            "can_trigger_actions": self.can_trigger_actions,
            "can_override_humans": self.can_override_humans,
            "forbidden_optimizations": list(self.forbidden_optimizations),
        }


MAINTENANCE_BOT_RULES = MaintenanceBotRules(
    can_observe=True,
    can_evaluate=True,
    can_report=True,
    can_modify_data=False,
    can_trigger_actions=False,
    can_override_humans=False,
    forbidden_optimizations=MAINTENANCE_FORBIDDEN_OPTIMIZATION_TARGETS,
)


def maintenance_forbidden_targets() -> Tuple[str, ...]:
    return unique_normalized((*CIV_CONSTITUTION.non_goals, *MAINTENANCE_FORBIDDEN_OPTIMIZATION_TARGETS))


def find_forbidden_targets(targets: Iterable[str]) -> Tuple[str, ...]:
    return find_prohibited_hits(targets, maintenance_forbidden_targets())


__all__ = [
    "MAINTENANCE_BOT_RULES",
    "MAINTENANCE_FORBIDDEN_OPTIMIZATION_TARGETS",
    "MaintenanceBotRules",
    "find_forbidden_targets",
    "maintenance_forbidden_targets",
]
