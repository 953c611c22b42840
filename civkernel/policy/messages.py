# SPDX-License-Identifier: Apache-2.0
"""Leaf value type for a single violation or warning."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Tuple


@dataclass(frozen=True)
class PolicyMessage:
    id: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "message": self.message}


def messages_to_dicts(messages: Iterable[PolicyMessage]) -> List[Dict[str, str]]:
    return [message.to_dict() for message in messages]


def message_ids(messages: Iterable[PolicyMessage]) -> Tuple[str, ...]:
    return tuple(message.id for message in messages)


__all__ = ["PolicyMessage", "message_ids", "messages_to_dicts"]
