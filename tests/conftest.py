"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

import pytest
import pytz

from src.domain.models import KarmaFeedEntry, TopScore
from tests.fakes import PrefixClassifier, StubResolver

FeedFactory = Callable[..., KarmaFeedEntry]


@pytest.fixture
def classifier() -> PrefixClassifier:
    return PrefixClassifier()


@pytest.fixture
def resolver() -> StubResolver:
    return StubResolver()


@pytest.fixture
def make_feed_entry() -> FeedFactory:
    """Factory for ledger rows at a given UTC day and hour."""

    def _make(
        from_user: str = "A",
        to_user: str = "alice",
        day: str = "2024-01-01",
        hour: int = 12,
        description: str | None = None,
    ) -> KarmaFeedEntry:
        year, month, dom = (int(part) for part in day.split("-"))
        return KarmaFeedEntry(
            timestamp=datetime(year, month, dom, hour, 0, tzinfo=pytz.UTC),
            to_user=to_user,
            from_user=from_user,
            channel_name="general",
            description=description,
        )

    return _make


@pytest.fixture
def tied_scores() -> list[TopScore]:
    return [
        TopScore(item="U1", score=10),
        TopScore(item="U2", score=10),
        TopScore(item="U3", score=8),
    ]
