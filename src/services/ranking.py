"""Leaderboard ranking.

Items which draw share a rank and the next rank is skipped: two users on 54
are both 1st, the next user on 52 is 3rd and the one after on 34 is 4th.
Users and named items are ranked in separate sequences.
"""

from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from itertools import accumulate, islice
from typing import Any, Final, Literal, overload

from src.config.logging_config import get_logger
from src.config.settings import DEFAULT_UNKNOWN_ENTITY_LABEL
from src.domain.exceptions import (
    MalformedInput,
    MalformedScoreRow,
    ResolutionFailure,
    UnsortedScoresError,
)
from src.domain.models import EntityKind, RankedItem, RankFormat, TopScore
from src.domain.protocols import EntityClassifierProtocol, IdentityResolverProtocol
from src.services.formatting import (
    format_leaderboard_line,
    format_points,
    link_user,
    title_case_first,
)

logger = get_logger(__name__)

NameRenderer = Callable[[str, IdentityResolverProtocol, str], Awaitable[str]]
ScoreRow = TopScore | Mapping[str, Any]


@dataclass(frozen=True)
class RankState:
    """Accumulator of the competition-rank fold."""

    last_score: int | None = None
    last_rank: int = 0
    emitted: int = 0


def advance_rank(state: RankState, score: int) -> RankState:
    """Fold step: keep the previous rank on a tie, else jump to emitted + 1."""
    if state.emitted and score == state.last_score:
        rank = state.last_rank
    else:
        rank = state.emitted + 1
    return RankState(last_score=score, last_rank=rank, emitted=state.emitted + 1)


def assign_competition_ranks(scores: Iterable[int]) -> list[int]:
    """Return the standard competition rank of each score.

    Scores are expected in non-increasing order.

    Example:
        >>> assign_competition_ranks([10, 10, 8])
        [1, 1, 3]
    """
    states = accumulate(scores, advance_rank, initial=RankState())
    return [state.last_rank for state in islice(states, 1, None)]


def _coerce_row(row: ScoreRow) -> TopScore:
    if isinstance(row, TopScore):
        return row

    try:
        item = row["item"]
        score = row["score"]
    except (KeyError, TypeError) as exc:
        raise MalformedInput(
            f"Score row is missing 'item' or 'score': {row!r}"
        ) from exc

    if isinstance(score, bool) or not isinstance(score, int):
        raise MalformedScoreRow(str(item), score)
    return TopScore(item=str(item), score=score)


def validate_top_scores(rows: Sequence[ScoreRow]) -> list[TopScore]:
    """Coerce rows to TopScore and check they are sorted descending.

    Raises:
        MalformedScoreRow: If a score is not an integer
        UnsortedScoresError: If a score is higher than the one before it
    """
    validated = [_coerce_row(row) for row in rows]
    for position in range(1, len(validated)):
        previous = validated[position - 1].score
        current = validated[position].score
        if current > previous:
            raise UnsortedScoresError(position, previous, current)
    return validated


async def _render_mention(
    entity_id: str, resolver: IdentityResolverProtocol, unknown_label: str
) -> str:
    return link_user(entity_id)


async def _render_real_name(
    entity_id: str, resolver: IdentityResolverProtocol, unknown_label: str
) -> str:
    try:
        return await resolver.resolve_display_name(entity_id)
    except ResolutionFailure as exc:
        logger.warning(
            "identity_resolution_failed", entity_id=entity_id, reason=exc.reason
        )
        return unknown_label


async def _render_verbatim(
    entity_id: str, resolver: IdentityResolverProtocol, unknown_label: str
) -> str:
    return entity_id


NAME_RENDERERS: Final[dict[tuple[EntityKind, RankFormat], NameRenderer]] = {
    (EntityKind.USER, RankFormat.DISPLAY): _render_mention,
    (EntityKind.USER, RankFormat.STRUCTURED): _render_real_name,
    (EntityKind.NAMED_ITEM, RankFormat.DISPLAY): _render_verbatim,
    (EntityKind.NAMED_ITEM, RankFormat.STRUCTURED): _render_verbatim,
}


@overload
async def rank_items(
    top_scores: Sequence[ScoreRow],
    *,
    resolver: IdentityResolverProtocol,
    classifier: EntityClassifierProtocol,
    kind: EntityKind = ...,
    fmt: Literal[RankFormat.DISPLAY] = ...,
    unknown_label: str = ...,
) -> list[str]: ...


@overload
async def rank_items(
    top_scores: Sequence[ScoreRow],
    *,
    resolver: IdentityResolverProtocol,
    classifier: EntityClassifierProtocol,
    kind: EntityKind = ...,
    fmt: Literal[RankFormat.STRUCTURED],
    unknown_label: str = ...,
) -> list[RankedItem]: ...


async def rank_items(
    top_scores: Sequence[ScoreRow],
    *,
    resolver: IdentityResolverProtocol,
    classifier: EntityClassifierProtocol,
    kind: EntityKind = EntityKind.USER,
    fmt: RankFormat = RankFormat.DISPLAY,
    unknown_label: str = DEFAULT_UNKNOWN_ENTITY_LABEL,
) -> list[str] | list[RankedItem]:
    """Rank entities of one kind by score.

    Args:
        top_scores: Rows sorted descending by score
        resolver: Identity resolver used for real names
        classifier: Decides which rows belong to ``kind``
        kind: Entity kind to rank; other rows are skipped
        fmt: DISPLAY for Slack lines, STRUCTURED for RankedItem records
        unknown_label: Name used when a user cannot be resolved

    Returns:
        Slack lines (DISPLAY) or RankedItem records (STRUCTURED)

    Raises:
        MalformedScoreRow: If a score is not an integer
        UnsortedScoresError: If rows are not sorted descending

    Example:
        >>> await rank_items(rows, resolver=r, classifier=c)
        ['1. <@U0AAAAAAA> [54 points] :muscle:', '1. <@U0BBBBBBB> [54 points]']
    """
    rows = [
        row
        for row in validate_top_scores(top_scores)
        if classifier.classify(row.item) is kind
    ]
    ranks = assign_competition_ranks(row.score for row in rows)
    render_name = NAME_RENDERERS[(kind, fmt)]

    lines: list[str] = []
    records: list[RankedItem] = []
    for position, (row, rank) in enumerate(zip(rows, ranks, strict=True)):
        name = title_case_first(await render_name(row.item, resolver, unknown_label))

        if fmt is RankFormat.DISPLAY:
            winner_kind = kind if position == 0 else None
            lines.append(format_leaderboard_line(rank, name, row.score, winner_kind))
        else:
            records.append(
                RankedItem(
                    rank=rank,
                    item=name,
                    score=format_points(row.score),
                    item_id=row.item,
                )
            )

    logger.debug(
        "leaderboard_ranked",
        kind=kind.value,
        format=fmt.value,
        input_rows=len(top_scores),
        ranked=len(rows),
    )
    return lines if fmt is RankFormat.DISPLAY else records
