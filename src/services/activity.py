"""Profile aggregations over ledger rows.

Covers the "who gave karma" histogram and the daily sent/received activity
series used for profile charts.
"""

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, datetime

import pytz

from src.domain.models import (
    ContributionSlice,
    DailyActivityPoint,
    KarmaFeedEntry,
    LedgerDirection,
)


def contribution_histogram(
    received: Iterable[KarmaFeedEntry],
) -> list[ContributionSlice]:
    """Count received karma events per giver.

    Example:
        >>> contribution_histogram(feed_from_a_a_b)
        [ContributionSlice(name='A', value=2), ContributionSlice(name='B', value=1)]
    """
    counts: Counter[str] = Counter(entry.from_user for entry in received)
    return [ContributionSlice(name=name, value=value) for name, value in counts.items()]


def utc_date_key(timestamp: datetime) -> str:
    """Return the UTC calendar date of a timestamp as YYYY-MM-DD.

    Naive timestamps are taken to be UTC already.
    """
    if timestamp.tzinfo is None:
        timestamp = pytz.UTC.localize(timestamp)
    return timestamp.astimezone(pytz.UTC).date().isoformat()


def count_by_date(
    feed: Iterable[KarmaFeedEntry], direction: LedgerDirection
) -> list[DailyActivityPoint]:
    """Bucket one ledger by UTC date.

    ``LedgerDirection.FROM`` fills ``received``, ``LedgerDirection.TO``
    fills ``sent``; the other field stays 0.
    """
    counts: Counter[str] = Counter(utc_date_key(entry.timestamp) for entry in feed)
    if direction is LedgerDirection.FROM:
        return [DailyActivityPoint(date=day, received=n) for day, n in counts.items()]
    return [DailyActivityPoint(date=day, sent=n) for day, n in counts.items()]


def merge_daily_series(
    *series: Sequence[DailyActivityPoint],
) -> list[DailyActivityPoint]:
    """Merge per-direction series into one row per date, oldest first.

    Counts for a date are summed across every input row, so the result does
    not depend on the order of the series or of their rows. Dates missing
    from every series are not filled in.
    """
    merged: dict[str, DailyActivityPoint] = {}

    for points in series:
        for point in points:
            accumulator = merged.get(point.date)
            if accumulator is None:
                accumulator = DailyActivityPoint(date=point.date)
                merged[point.date] = accumulator
            accumulator.received += point.received
            accumulator.sent += point.sent

    return sorted(merged.values(), key=lambda point: date.fromisoformat(point.date))


def build_activity(
    received: Iterable[KarmaFeedEntry], given: Iterable[KarmaFeedEntry]
) -> list[DailyActivityPoint]:
    """Daily sent/received series for a profile."""
    return merge_daily_series(
        count_by_date(received, LedgerDirection.FROM),
        count_by_date(given, LedgerDirection.TO),
    )
