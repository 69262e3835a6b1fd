"""Use case: assemble the karma profile of one entity."""

import asyncio
from collections.abc import Sequence

from src.config.logging_config import get_logger
from src.config.settings import DEFAULT_UNKNOWN_ENTITY_LABEL
from src.domain.models import (
    EntityKind,
    LedgerDirection,
    Profile,
    RankedItem,
    RankFormat,
)
from src.domain.protocols import (
    EntityClassifierProtocol,
    IdentityResolverProtocol,
    ScoreRetrieverProtocol,
)
from src.services.activity import build_activity, contribution_histogram
from src.services.ranking import rank_items
from src.use_cases.retrieval import retrieve

logger = get_logger(__name__)

UNRANKED = 0


def find_rank(leaderboard: Sequence[RankedItem], entity_id: str | None) -> int:
    """Rank of an entity on a structured leaderboard, 0 when it is absent."""
    if entity_id is None:
        return UNRANKED
    for entry in leaderboard:
        if entry.item_id == entity_id:
            return entry.rank
    return UNRANKED


async def build_profile(
    retriever: ScoreRetrieverProtocol,
    resolver: IdentityResolverProtocol,
    classifier: EntityClassifierProtocol,
    *,
    username: str,
    channel_id: str | None = None,
    from_to: LedgerDirection = LedgerDirection.FROM,
    page: int | None = None,
    items_per_page: int | None = None,
    search: str | None = None,
    unknown_label: str = DEFAULT_UNKNOWN_ENTITY_LABEL,
) -> Profile:
    """Build the profile of ``username`` within a channel scope.

    Independent retrievals run concurrently, so the retriever must tolerate
    overlapping calls.

    Args:
        retriever: Score data source
        resolver: Identity resolver used for the leaderboard
        classifier: Entity classifier used for the leaderboard
        username: Handle of the profiled entity
        channel_id: Channel scope, None for all channels
        from_to: Direction of the ledger page shown with the profile
        page: Page number of the ledger page
        items_per_page: Page size of the ledger page
        search: Free-text filter for the ledger page
        unknown_label: Name used for unresolvable users

    Returns:
        The assembled profile

    Raises:
        RetrievalFailure: If any retrieval fails; no partial profile is built
        MalformedInput: If the channel leaderboard rows are malformed
    """
    user_id = await retrieve("get_user_id", retriever.get_user_id(username))

    top_scores, received, given, ledger_page, name_surname = await asyncio.gather(
        retrieve(
            "retrieve_top_scores",
            retriever.retrieve_top_scores(None, None, channel_id),
        ),
        retrieve(
            "retrieve_ledger[from]",
            retriever.retrieve_ledger(LedgerDirection.FROM, username, channel_id),
        ),
        retrieve(
            "retrieve_ledger[to]",
            retriever.retrieve_ledger(LedgerDirection.TO, username, channel_id),
        ),
        retrieve(
            "retrieve_ledger[page]",
            retriever.retrieve_ledger(
                from_to, username, channel_id, page, items_per_page, search
            ),
        ),
        retrieve("get_name", retriever.get_name(username)),
    )

    leaderboard = await rank_items(
        top_scores,
        resolver=resolver,
        classifier=classifier,
        kind=EntityKind.USER,
        fmt=RankFormat.STRUCTURED,
        unknown_label=unknown_label,
    )

    profile = Profile(
        feed=ledger_page.feed,
        count=ledger_page.count,
        name_surname=name_surname,
        all_karma=received.count,
        karma_given=given.count,
        user_rank=find_rank(leaderboard, user_id),
        karma_divided=contribution_histogram(received.feed),
        activity=build_activity(received.feed, given.feed),
    )

    logger.info(
        "profile_built",
        username=username,
        channel_id=channel_id,
        user_rank=profile.user_rank,
        all_karma=profile.all_karma,
        karma_given=profile.karma_given,
        activity_days=len(profile.activity),
    )
    return profile
