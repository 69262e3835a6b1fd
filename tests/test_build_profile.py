"""Tests for the profile assembly use case."""

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from src.domain.exceptions import RetrievalFailure, UnsortedScoresError
from src.domain.models import (
    KarmaFeedEntry,
    LedgerDirection,
    Profile,
    RankedItem,
    TopScore,
)
from src.use_cases.build_profile import build_profile, find_rank
from tests.fakes import InMemoryRetriever, PrefixClassifier, StubResolver

FeedFactory = Callable[..., KarmaFeedEntry]


@pytest.fixture
def retriever(make_feed_entry: FeedFactory) -> InMemoryRetriever:
    return InMemoryRetriever(
        top_scores=[
            TopScore(item="U1", score=10),
            TopScore(item="coffee", score=9),
            TopScore(item="U2", score=8),
            TopScore(item="U3", score=8),
        ],
        received=[
            make_feed_entry("A", day="2024-01-01", description="thanks"),
            make_feed_entry("A", day="2024-01-01", hour=15),
            make_feed_entry("B", day="2024-01-03", description="thanks again"),
        ],
        given=[make_feed_entry("alice", to_user="B", day="2024-01-01")],
        user_ids={"alice": "U3", "bob": "U9"},
        names={"alice": "Alice Liddell"},
    )


def _build(
    retriever: InMemoryRetriever,
    resolver: StubResolver,
    classifier: PrefixClassifier,
    **kwargs: Any,
) -> Profile:
    params: dict[str, Any] = {"username": "alice", "channel_id": "C1"}
    params.update(kwargs)
    return asyncio.run(build_profile(retriever, resolver, classifier, **params))


def test_profile_totals_rank_histogram_and_activity(
    retriever: InMemoryRetriever, resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    profile = _build(retriever, resolver, classifier)

    assert profile.name_surname == "Alice Liddell"
    assert profile.all_karma == 3
    assert profile.karma_given == 1
    assert profile.user_rank == 2
    assert {s.name: s.value for s in profile.karma_divided} == {"A": 2, "B": 1}
    assert [p.model_dump() for p in profile.activity] == [
        {"date": "2024-01-01", "received": 2, "sent": 1},
        {"date": "2024-01-03", "received": 1, "sent": 0},
    ]


def test_profile_feed_is_the_requested_page(
    retriever: InMemoryRetriever, resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    profile = _build(
        retriever,
        resolver,
        classifier,
        from_to=LedgerDirection.FROM,
        page=1,
        items_per_page=2,
        search="thanks",
    )

    assert profile.count == 2
    assert [entry.description for entry in profile.feed] == ["thanks", "thanks again"]
    assert (
        "retrieve_ledger",
        (LedgerDirection.FROM, "alice", "C1", 1, 2, "thanks"),
    ) in retriever.calls


def test_profile_given_direction_page(
    retriever: InMemoryRetriever, resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    profile = _build(retriever, resolver, classifier, from_to=LedgerDirection.TO)

    assert profile.count == 1
    assert profile.feed[0].to_user == "B"


def test_unranked_entity_gets_rank_zero(
    retriever: InMemoryRetriever, resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    profile = _build(retriever, resolver, classifier, username="bob")

    assert profile.user_rank == 0


def test_unknown_handle_gets_rank_zero(
    retriever: InMemoryRetriever, resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    profile = _build(retriever, resolver, classifier, username="nobody")

    assert profile.user_rank == 0
    assert profile.name_surname == "nobody"


def test_profile_serializes_with_frontend_field_names(
    retriever: InMemoryRetriever, resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    payload = _build(retriever, resolver, classifier).model_dump(mode="json", by_alias=True)

    assert set(payload) == {
        "feed",
        "count",
        "nameSurname",
        "allKarma",
        "karmaGiven",
        "userRank",
        "karmaDivided",
        "activity",
    }
    assert payload["feed"][0]["fromUser"] == "A"
    assert payload["feed"][0]["timestamp"].startswith("2024-01-01T12:00:00")


@pytest.mark.parametrize(
    "failing_step", ["get_user_id", "retrieve_top_scores", "retrieve_ledger", "get_name"]
)
def test_any_retrieval_failure_aborts_the_profile(
    retriever: InMemoryRetriever,
    resolver: StubResolver,
    classifier: PrefixClassifier,
    failing_step: str,
) -> None:
    retriever.failing = {failing_step}

    with pytest.raises(RetrievalFailure) as excinfo:
        _build(retriever, resolver, classifier)

    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_malformed_leaderboard_is_not_masked(
    retriever: InMemoryRetriever, resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    retriever.top_scores = [TopScore(item="U1", score=1), TopScore(item="U2", score=5)]

    with pytest.raises(UnsortedScoresError):
        _build(retriever, resolver, classifier)


def test_find_rank() -> None:
    board = [
        RankedItem(rank=1, item="Ada", score="3 points", item_id="U1"),
        RankedItem(rank=1, item="Grace", score="3 points", item_id="U2"),
    ]

    assert find_rank(board, "U2") == 1
    assert find_rank(board, "U7") == 0
    assert find_rank(board, None) == 0
