"""Tests for ledger resolution."""

import asyncio

from src.domain.models import ScoreEvent
from src.services.ledger import resolve_ledger
from tests.fakes import PrefixClassifier, StubResolver


def test_user_rows_get_names_and_channel_names(classifier: PrefixClassifier) -> None:
    resolver = StubResolver(
        names={"U1": "Ada", "U2": "Grace"}, channels={"C1": "general"}
    )
    rows = [ScoreEvent(item="U1", score=3, from_user_id="U2", channel_id="C1")]

    ledger = asyncio.run(resolve_ledger(rows, resolver=resolver, classifier=classifier))

    assert [row.model_dump(by_alias=True) for row in ledger] == [
        {"toUser": "Ada", "fromUser": "Grace", "score": 3, "channel": "#general"}
    ]


def test_named_item_rows_pass_ids_through(
    resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    rows = [ScoreEvent(item="coffee", score=-2, from_user_id="U2", channel_id="C1")]

    ledger = asyncio.run(resolve_ledger(rows, resolver=resolver, classifier=classifier))

    assert ledger[0].to_user == "coffee"
    assert ledger[0].from_user == "U2"
    assert ledger[0].channel == "#C1"
    assert resolver.user_calls == []
    assert resolver.channel_calls == []


def test_order_and_length_are_preserved(
    resolver: StubResolver, classifier: PrefixClassifier
) -> None:
    rows = [
        ScoreEvent(item=item, score=1, from_user_id="U9", channel_id="C1")
        for item in ("U3", "tea", "U1", "U2")
    ]

    ledger = asyncio.run(resolve_ledger(rows, resolver=resolver, classifier=classifier))

    assert [row.to_user for row in ledger] == ["U3", "tea", "U1", "U2"]


def test_unresolvable_ids_become_unknown(classifier: PrefixClassifier) -> None:
    resolver = StubResolver(names={"U1": "Ada"}, failing={"U2", "C9"})
    rows = [ScoreEvent(item="U1", score=1, from_user_id="U2", channel_id="C9")]

    ledger = asyncio.run(resolve_ledger(rows, resolver=resolver, classifier=classifier))

    assert ledger[0].from_user == "(unknown)"
    assert ledger[0].channel == "#(unknown)"
    assert ledger[0].to_user == "Ada"
