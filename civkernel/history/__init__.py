# SPDX-License-Identifier: Apache-2.0
"""Descriptive history ledger: append-only, sourced, context-only claims."""

from civkernel.history.kernel import (
    HistoryClaim,
    HistoryClaimError,
    HistoryDomain,
    HistoryQueryResult,
    HistoryState,
    HistoryUsageDecision,
    Source,
    append_history_challenge,
    append_history_claim,
    create_history_state,
    evaluate_history_usage,
    get_history_ledger,
    query_history_claims,
)

__all__ = [
    "HistoryClaim",
    "HistoryClaimError",
    "HistoryDomain",
    "HistoryQueryResult",
    "HistoryState",
    "HistoryUsageDecision",
    "Source",
    "append_history_challenge",
    "append_history_claim",
    "create_history_state",
    "evaluate_history_usage",
    "get_history_ledger",
    "query_history_claims",
]
