# SPDX-License-Identifier: Apache-2.0

import dataclasses
import math

import pytest

from civkernel.policy.drift import DRIFT_FACTORS, compute_drift_score

COUNT_KEYS = [factor.input_key for factor in DRIFT_FACTORS]


def test_single_invariant_violation_costs_35() -> None:
    score = compute_drift_score(
        {
            "invariant_violations_count": 1,
            "prohibited_target_hits_count": 0,
            "missing_intent_count": 0,
            "append_only_breach_count": 0,
            "missing_approval_count": 0,
        }
    )

    assert score.score == 65
    assert [line.id for line in score.flagged] == ["drift::invariants"]


def test_clean_input_scores_full_marks() -> None:
    score = compute_drift_score({})

    assert score.score == 100
    assert [line.penalty for line in score.lines] == [0, 0, 0, 0, 0]


def test_every_factor_flagged_hits_the_floor() -> None:
    score = compute_drift_score({key: 3 for key in COUNT_KEYS})

    assert score.score == 0
    assert sum(line.penalty for line in score.lines) == 100


def test_penalty_is_a_step_not_proportional() -> None:
    assert compute_drift_score({"prohibited_target_hits_count": 1}).score == 75
    assert compute_drift_score({"prohibited_target_hits_count": 40}).score == 75


def test_score_is_monotone_in_each_count() -> None:
    for key in COUNT_KEYS:
        previous = compute_drift_score({}).score
        for count in (0, 1, 2, 10):
            current = compute_drift_score({key: count}).score
            assert current <= previous
            previous = current


def test_malformed_counts_default_to_zero() -> None:
    score = compute_drift_score(
        {
            "invariant_violations_count": "lots",
            "prohibited_target_hits_count": None,
            "missing_intent_count": math.nan,
            "append_only_breach_count": [],
            "missing_approval_count": -4,
        }
    )

    assert score.score == 100
    assert 0 <= score.score <= 100


def test_explanations_report_the_literal_count() -> None:
    score = compute_drift_score({"missing_intent_count": 2, "append_only_breach_count": 0})

    by_id = {line.id: line for line in score.lines}
    assert "2" in by_id["drift::intent"].explanation
    assert "0" in by_id["drift::append-only"].explanation
    assert by_id["drift::intent"].penalty == 20


def test_score_serializes_line_items() -> None:
    payload = compute_drift_score({"missing_approval_count": 1}).to_dict()

    assert payload["score"] == 95
    assert payload["lines"][-1] == {
        "id": "drift::human-approval",
        "label": "Human approval wiring",
        "weight": 5,
        "count": 1,
        "penalty": 5,
        "explanation": "Human approval wiring missing (count 1).",
    }


def test_score_is_repeatable_and_frozen() -> None:
    counts = {"invariant_violations_count": 2, "missing_approval_count": "1"}
    snapshot = dict(counts)

    first = compute_drift_score(counts)
    second = compute_drift_score(counts)

    assert first == second
    assert first.to_dict() == second.to_dict()
    assert counts == snapshot
    assert isinstance(first.lines, tuple)
    with pytest.raises(dataclasses.FrozenInstanceError):
        first.score = 100
