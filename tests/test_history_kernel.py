# SPDX-License-Identifier: Apache-2.0

import pytest

from civkernel.history.kernel import (
    HistoryClaim,
    HistoryClaimError,
    HistoryDomain,
    advance_history_clock,
    append_history_challenge,
    append_history_claim,
    contains_prescriptive_language,
    create_history_state,
    evaluate_history_usage,
    get_history_ledger,
    query_history_claims,
)


def _claim(**overrides):
    payload = {
        "claim_text": "Grain prices in the region doubled between 1845 and 1849.",
        "time_range": "1845-1849",
        "geography": "Ireland",
        "domain": "economics",
        "sources": [
            {"author": "Board of Trade", "type": "data", "date": "1850"},
            {"author": "C. Woodham-Smith", "type": "secondary", "date": "1962"},
        ],
        "counter_sources": [],
        "evidence_grade": "b",
        "confidence_score": 0.8,
        "controversy_score": 0.1,
        "added_by": "curator",
        "falsifiable_prompt": "Do parish price records for 1847 show a smaller increase?",
    }
    payload.update(overrides)
    return payload


def test_append_assigns_logical_time_and_default_id() -> None:
    state = create_history_state()

    state, claim = append_history_claim(state, _claim())

    assert claim.added_at == "h1"
    assert claim.claim_id == "claim-h1"
    assert claim.domain is HistoryDomain.ECONOMICS
    assert claim.evidence_grade == "B"
    assert state.logical_clock == 1
    assert state.claims == (claim,)


def test_prescriptive_claim_is_rejected_and_state_is_unchanged() -> None:
    state, _ = append_history_claim(create_history_state(), _claim())

    with pytest.raises(HistoryClaimError, match="prescriptive"):
        append_history_claim(state, _claim(claim_text="You should optimize pricing"))

    assert len(state.claims) == 1
    assert state.logical_clock == 1


def test_claims_touching_forbidden_targets_are_rejected() -> None:
    with pytest.raises(HistoryClaimError, match="cannot override"):
        append_history_claim(None, _claim(claim_text="Guilds relied on deception to hold markets."))
    with pytest.raises(HistoryClaimError, match="cannot override"):
        append_history_claim(None, _claim(claim_text="Ministries engaged in status games for decades."))


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"claim_text": "  "}, "claim_text is required"),
        ({"falsifiable_prompt": ""}, "falsifiable_prompt is required"),
        ({"evidence_grade": "E"}, "Invalid evidence_grade"),
        ({"confidence_score": 1.5}, "confidence_score must be between 0 and 1"),
        ({"controversy_score": "high"}, "controversy_score must be between 0 and 1"),
        ({"added_by": "visitor"}, "Invalid added_by"),
        ({"writer_role": "system"}, "writer_role does not match added_by"),
        ({"time_range": ""}, "time_range is required"),
        ({"geography": None}, "geography is required"),
        ({"sources": []}, "at least one source"),
        ({"sources": [{"author": "", "type": "data", "date": "1850"}]}, "source.author is required"),
        (
            {"sources": [{"author": "A", "type": "secondary", "date": "1900"}]},
            "primary or data-based source",
        ),
        (
            {"sources": [{"author": "A", "type": "primary", "date": "1900"}]},
            "independent secondary source",
        ),
        (
            {
                "sources": [
                    {"author": "A", "type": "primary", "date": "1900"},
                    {"author": "A", "type": "secondary", "date": "1950"},
                ]
            },
            "must be independent",
        ),
        ({"controversy_score": 0.5}, "counter_sources is required"),
        ({"domain": "astrology"}, "Invalid history domain"),
    ],
)
def test_invalid_claims_are_rejected(overrides, message) -> None:
    with pytest.raises(HistoryClaimError, match=message):
        append_history_claim(create_history_state(), _claim(**overrides))


def test_controversial_claim_with_counter_sources_is_accepted() -> None:
    _, claim = append_history_claim(
        None,
        _claim(
            controversy_score=0.7,
            counter_sources=[{"author": "P. Gray", "type": "secondary", "date": "1995"}],
        ),
    )

    assert claim.counter_sources[0].author == "P. Gray"


def test_explicit_logical_time_advances_the_clock() -> None:
    state, first = append_history_claim(None, _claim(added_at="h7"))
    state, second = append_history_claim(state, _claim(geography="Scotland"))

    assert first.added_at == "h7"
    assert second.added_at == "h8"
    assert advance_history_clock(state)[1] == "h9"


def test_challenges_reference_an_existing_claim() -> None:
    state, original = append_history_claim(None, _claim())

    with pytest.raises(HistoryClaimError, match="challenge_of is required"):
        append_history_challenge(state, _claim())

    state, challenge = append_history_challenge(
        state,
        _claim(claim_text="Grain prices rose by a third between 1845 and 1849.", challenge_of=original.claim_id),
    )
    assert challenge.challenge_of == "claim-h1"
    assert len(state.claims) == 2


def test_query_requires_explicit_intent_bound_request() -> None:
    state, _ = append_history_claim(None, _claim())
    state, _ = append_history_claim(state, _claim(domain="labor", geography="England"))

    assert query_history_claims(state, {}).reason == "explicit_query_required"
    assert query_history_claims(state, {"explicit_query": True}).reason == "intent_required"

    result = query_history_claims(state, {"explicit_query": True, "intent_id": "intent-1", "domain": "labor"})
    assert result.ok is True
    assert [claim.geography for claim in result.claims] == ["England"]


def test_history_usage_is_context_only() -> None:
    assert evaluate_history_usage({"purpose": "context"}).reason == "explicit_intent_required"
    assert evaluate_history_usage({"explicit_intent": True, "purpose": "decide"}).reason == "context_only"
    assert (
        evaluate_history_usage({"explicit_intent": True, "purpose": "context", "overrides_invariants": True}).reason
        == "cannot_override_constitution_or_invariants"
    )
    decision = evaluate_history_usage({"explicit_intent": True, "purpose": "context"})
    assert decision.ok is True
    assert decision.reason == "context_allowed"


def test_ledger_is_ordered_by_logical_time() -> None:
    state, _ = append_history_claim(None, _claim(added_at="h10"))
    state, _ = append_history_claim(state, _claim(added_at="h2", geography="Wales"))

    assert [claim.added_at for claim in get_history_ledger(state.claims)] == ["h2", "h10"]


def test_prescriptive_detection_uses_word_boundaries() -> None:
    assert contains_prescriptive_language("Officials MUST have known.")
    assert not contains_prescriptive_language("Mustard exports rose in 1850.")


def test_state_seeded_from_serialized_claims_is_rebuilt() -> None:
    _, original = append_history_claim(None, _claim(added_at="h3"))
    seed = {"claims": [original.to_dict()], "logical_clock": 3}

    state = create_history_state(seed)
    assert state.claims == (original,)

    state, second = append_history_claim(seed, _claim(domain="labor", geography="England"))
    assert all(isinstance(claim, HistoryClaim) for claim in state.claims)
    assert second.added_at == "h4"
    assert [claim.added_at for claim in get_history_ledger(state.claims)] == ["h3", "h4"]

    result = query_history_claims(seed, {"explicit_query": True, "intent_id": "intent-1", "domain": "economics"})
    assert result.claims == (original,)


def test_state_rejects_unrecognized_stored_claims() -> None:
    with pytest.raises(HistoryClaimError, match="Invalid stored claim"):
        create_history_state({"claims": ["claim-h1"]})
    with pytest.raises(HistoryClaimError, match="claim_id and added_at"):
        create_history_state({"claims": [{"claim_text": "orphan"}]})
