"""Tests for leaderboard ranking."""

import asyncio
from typing import Any

import pytest

from src.domain.exceptions import MalformedInput, MalformedScoreRow, UnsortedScoresError
from src.domain.models import EntityKind, RankedItem, RankFormat, TopScore
from src.services.ranking import (
    RankState,
    advance_rank,
    assign_competition_ranks,
    rank_items,
    validate_top_scores,
)
from tests.fakes import PrefixClassifier, StubResolver


def _rank(
    rows: list[Any],
    resolver: StubResolver,
    classifier: PrefixClassifier,
    **kwargs: Any,
) -> list[Any]:
    return asyncio.run(
        rank_items(rows, resolver=resolver, classifier=classifier, **kwargs)
    )


def test_ties_share_rank_and_skip_the_next() -> None:
    assert assign_competition_ranks([10, 10, 8]) == [1, 1, 3]


def test_competition_ranks_for_longer_board() -> None:
    assert assign_competition_ranks([54, 54, 52, 34, 34, 34, 1]) == [1, 1, 3, 4, 4, 4, 7]


def test_competition_ranks_empty() -> None:
    assert assign_competition_ranks([]) == []


def test_advance_rank_first_step_is_rank_one_even_for_zero() -> None:
    """A zero score must not be mistaken for a tie with the empty state."""
    state = advance_rank(RankState(), 0)

    assert state == RankState(last_score=0, last_rank=1, emitted=1)


def test_structured_ranking_scenario(
    tied_scores: list[TopScore],
    resolver: StubResolver,
    classifier: PrefixClassifier,
) -> None:
    result = _rank(tied_scores, resolver, classifier, fmt=RankFormat.STRUCTURED)

    assert [item.model_dump() for item in result] == [
        {"rank": 1, "item": "U1", "score": "10 points", "item_id": "U1"},
        {"rank": 1, "item": "U2", "score": "10 points", "item_id": "U2"},
        {"rank": 3, "item": "U3", "score": "8 points", "item_id": "U3"},
    ]


def test_structured_ranking_uses_real_names_title_cased(
    classifier: PrefixClassifier,
) -> None:
    resolver = StubResolver(names={"U1": "ada lovelace"})

    result = _rank(
        [TopScore(item="U1", score=1)], resolver, classifier, fmt=RankFormat.STRUCTURED
    )

    assert result == [RankedItem(rank=1, item="Ada lovelace", score="1 point", item_id="U1")]


def test_structured_ranking_degrades_to_unknown_label(
    classifier: PrefixClassifier,
) -> None:
    resolver = StubResolver(names={"U1": "Ada"}, failing={"U2"})
    rows = [TopScore(item="U1", score=3), TopScore(item="U2", score=2)]

    result = _rank(rows, resolver, classifier, fmt=RankFormat.STRUCTURED)

    assert [item.item for item in result] == ["Ada", "(unknown)"]
    assert [item.rank for item in result] == [1, 2]


def test_display_ranking_links_users_and_marks_winner(
    tied_scores: list[TopScore],
    resolver: StubResolver,
    classifier: PrefixClassifier,
) -> None:
    result = _rank(tied_scores, resolver, classifier)

    assert result == [
        "1. <@U1> [10 points] :muscle:",
        "1. <@U2> [10 points]",
        "3. <@U3> [8 points]",
    ]
    assert resolver.user_calls == []


def test_display_ranking_of_named_items_uses_tada(
    resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    rows = [
        TopScore(item="coffee", score=7),
        TopScore(item="U1", score=5),
        TopScore(item="tea", score=-1),
    ]

    result = _rank(rows, resolver, classifier, kind=EntityKind.NAMED_ITEM)

    assert result == ["1. Coffee [7 points] :tada:", "2. Tea [-1 point]"]


def test_kinds_never_share_a_rank_sequence(
    resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    rows = [
        TopScore(item="coffee", score=9),
        TopScore(item="U1", score=8),
        TopScore(item="tea", score=8),
        TopScore(item="U2", score=2),
    ]

    users = _rank(rows, resolver, classifier, fmt=RankFormat.STRUCTURED)
    items = _rank(
        rows, resolver, classifier, kind=EntityKind.NAMED_ITEM, fmt=RankFormat.STRUCTURED
    )

    assert [(u.item_id, u.rank) for u in users] == [("U1", 1), ("U2", 2)]
    assert [(i.item_id, i.rank) for i in items] == [("coffee", 1), ("tea", 2)]
    assert not {u.item_id for u in users} & {i.item_id for i in items}


def test_ranks_are_monotonic_and_output_not_longer_than_input(
    resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    scores = [12, 12, 12, 9, 7, 7, 0, -3, -3]
    rows = [
        TopScore(item=f"U{i}" if i % 3 else f"item{i}", score=score)
        for i, score in enumerate(scores)
    ]

    result = _rank(rows, resolver, classifier, fmt=RankFormat.STRUCTURED)
    ranks = [item.rank for item in result]

    assert len(result) <= len(rows)
    assert all(a <= b for a, b in zip(ranks, ranks[1:]))


def test_ranking_is_idempotent(
    tied_scores: list[TopScore],
    resolver: StubResolver,
    classifier: PrefixClassifier,
) -> None:
    for fmt in RankFormat:
        first = _rank(tied_scores, resolver, classifier, fmt=fmt)
        second = _rank(tied_scores, resolver, classifier, fmt=fmt)
        assert first == second


def test_mapping_rows_are_accepted(
    resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    rows = [{"item": "U1", "score": 4}, {"item": "U2", "score": 0}]

    result = _rank(rows, resolver, classifier)

    assert result == ["1. <@U1> [4 points] :muscle:", "2. <@U2> [0 points]"]


@pytest.mark.parametrize("bad_score", ["10", 10.5, None, True])
def test_non_integer_scores_are_rejected(
    bad_score: object, resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    rows = [{"item": "U1", "score": 12}, {"item": "U2", "score": bad_score}]

    with pytest.raises(MalformedScoreRow) as excinfo:
        _rank(rows, resolver, classifier)

    assert excinfo.value.item == "U2"


def test_rows_missing_fields_are_rejected() -> None:
    with pytest.raises(MalformedInput):
        validate_top_scores([{"item": "U1"}])


def test_unsorted_scores_are_rejected(
    resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    rows = [TopScore(item="U1", score=3), TopScore(item="coffee", score=5)]

    with pytest.raises(UnsortedScoresError) as excinfo:
        _rank(rows, resolver, classifier)

    assert excinfo.value.position == 1
    assert (excinfo.value.previous, excinfo.value.current) == (3, 5)


def test_empty_input_ranks_to_empty_list(
    resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    assert _rank([], resolver, classifier) == []
